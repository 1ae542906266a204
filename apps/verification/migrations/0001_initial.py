from django.db import migrations, models
import uuid


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Challenge",
            fields=[
                ("id", models.UUIDField(primary_key=True, serialize=False, editable=False, default=uuid.uuid4)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "purpose",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("verify_email", "Verify email"),
                            ("onboarding", "Onboarding"),
                            ("reset_password", "Reset password"),
                        ],
                    ),
                ),
                ("target", models.EmailField(max_length=254)),
                ("token_hash", models.CharField(max_length=64, unique=True)),
                ("code_hash", models.CharField(max_length=64)),
                ("expires_at", models.DateTimeField()),
                ("consumed_at", models.DateTimeField(blank=True, null=True)),
                ("invalidated_at", models.DateTimeField(blank=True, null=True)),
                ("attempt_count", models.PositiveSmallIntegerField(default=0)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["purpose", "target", "created_at"], name="verif_purpose_target_idx"),
                    models.Index(fields=["expires_at"], name="verif_expires_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("purpose", "target"),
                        condition=models.Q(consumed_at__isnull=True, invalidated_at__isnull=True),
                        name="verification_challenge_one_open_per_target",
                    ),
                ],
            },
        ),
    ]
