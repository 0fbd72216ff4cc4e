import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Currency",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("code", models.CharField(max_length=3, unique=True)),
                ("name", models.CharField(max_length=64)),
            ],
            options={
                "verbose_name_plural": "currencies",
                "ordering": ["code"],
            },
        ),
        migrations.CreateModel(
            name="ExchangeRateRecord",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("base_code", models.CharField(db_index=True, max_length=3)),
                ("rate", models.DecimalField(decimal_places=15, max_digits=30)),
                ("updated_at", models.DateTimeField(db_index=True)),
                (
                    "target_currency",
                    models.ForeignKey(
                        db_column="target_code",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="rates.currency",
                        to_field="code",
                    ),
                ),
            ],
            options={
                "ordering": ["base_code", "target_currency"],
            },
        ),
        migrations.AddConstraint(
            model_name="exchangeraterecord",
            constraint=models.UniqueConstraint(
                fields=("base_code", "target_currency"),
                name="unique_rate_per_pair",
            ),
        ),
    ]
