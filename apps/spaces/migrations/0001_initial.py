import django.db.models.deletion
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='SpaceConfiguration',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('space_type', models.SlugField(max_length=50, unique=True)),
                ('name', models.CharField(max_length=120)),
                ('description', models.TextField(blank=True)),
                ('image_url', models.CharField(blank=True, max_length=500)),
                ('min_capacity', models.PositiveSmallIntegerField(default=1)),
                ('max_capacity', models.PositiveSmallIntegerField(default=1)),
                ('is_exclusive', models.BooleanField(default=False, help_text='Une seule réservation par créneau (salles de réunion, privatisation).')),
                ('requires_quote', models.BooleanField(default=False, help_text='Réservation sur devis uniquement.')),
                ('hourly_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('daily_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('weekly_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('monthly_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('per_person', models.BooleanField(default=True, help_text='Prix multiplié par le nombre de personnes.')),
                ('deposit_enabled', models.BooleanField(default=False)),
                ('deposit_percentage', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ('deposit_fixed_amount', models.PositiveIntegerField(blank=True, help_text='En centimes.', null=True)),
                ('deposit_minimum_amount', models.PositiveIntegerField(blank=True, help_text='En centimes.', null=True)),
                ('display_order', models.PositiveSmallIntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('is_deleted', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': "Configuration d'espace",
                'verbose_name_plural': "Configurations d'espace",
                'ordering': ['display_order', 'name'],
            },
        ),
        migrations.CreateModel(
            name='PricingTier',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('min_people', models.PositiveSmallIntegerField()),
                ('max_people', models.PositiveSmallIntegerField()),
                ('hourly_rate', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('daily_rate', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('extra_person_hourly', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('extra_person_daily', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('space', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tiers', to='spaces.spaceconfiguration')),
            ],
            options={
                'ordering': ['space', 'min_people'],
                'constraints': [models.CheckConstraint(condition=models.Q(('max_people__gte', models.F('min_people'))), name='pricing_tier_valid_range')],
            },
        ),
        migrations.CreateModel(
            name='AdditionalService',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=120)),
                ('description', models.TextField(blank=True)),
                ('price', models.DecimalField(decimal_places=2, max_digits=10)),
                ('price_unit', models.CharField(choices=[('per_person', 'Par personne'), ('flat', 'Forfait')], default='flat', max_length=20)),
                ('space_types', models.JSONField(blank=True, default=list, help_text='Vide = tous les espaces.')),
                ('is_active', models.BooleanField(default=True)),
                ('display_order', models.PositiveSmallIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Service additionnel',
                'verbose_name_plural': 'Services additionnels',
                'ordering': ['display_order', 'name'],
            },
        ),
        migrations.CreateModel(
            name='BookingSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('open_space_cancellation_policy', models.JSONField(blank=True, default=list)),
                ('meeting_room_cancellation_policy', models.JSONField(blank=True, default=list)),
                ('notification_email', models.EmailField(default='strasbourg@coworkingcafe.fr', max_length=254)),
                ('deposit_hold_days', models.PositiveSmallIntegerField(default=7, help_text="Jours avant la réservation où l'empreinte bancaire est posée.")),
                ('deferred_intent_days', models.PositiveSmallIntegerField(default=6, help_text='Jours avant la réservation où le paiement différé est préparé.')),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Réglages de réservation',
                'verbose_name_plural': 'Réglages de réservation',
            },
        ),
        migrations.CreateModel(
            name='ExceptionalClosure',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('reason', models.CharField(max_length=255)),
                ('is_full_day', models.BooleanField(default=True)),
                ('start_time', models.TimeField(blank=True, null=True)),
                ('end_time', models.TimeField(blank=True, null=True)),
                ('space_types', models.JSONField(blank=True, default=list, help_text="Vide = tout l'établissement.")),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Fermeture exceptionnelle',
                'verbose_name_plural': 'Fermetures exceptionnelles',
                'ordering': ['date', 'start_time'],
                'indexes': [models.Index(fields=['date'], name='closure_date_idx')],
            },
        ),
    ]
