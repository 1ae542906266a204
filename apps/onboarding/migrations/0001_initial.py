from django.db import migrations, models
import uuid


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="OnboardingSession",
            fields=[
                ("id", models.UUIDField(primary_key=True, serialize=False, editable=False, default=uuid.uuid4)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("email", models.EmailField(db_index=True, max_length=254)),
                (
                    "step",
                    models.CharField(
                        choices=[
                            ("verified", "Email verified"),
                            ("profile_submitted", "Profile submitted"),
                            ("organization_submitted", "Organization submitted"),
                            ("complete", "Complete"),
                        ],
                        default="verified",
                        max_length=30,
                    ),
                ),
                ("expires_at", models.DateTimeField()),
                ("first_name", models.CharField(blank=True, max_length=150)),
                ("last_name", models.CharField(blank=True, max_length=150)),
                ("password_hash", models.CharField(blank=True, max_length=128)),
                ("remember", models.BooleanField(default=False)),
                ("organization_name", models.CharField(blank=True, max_length=200)),
                ("address_line1", models.CharField(blank=True, max_length=200)),
                ("address_line2", models.CharField(blank=True, max_length=200)),
                ("city", models.CharField(blank=True, max_length=120)),
                ("state", models.CharField(blank=True, max_length=120)),
                ("zip_code", models.CharField(blank=True, max_length=20)),
            ],
            options={},
        ),
    ]
