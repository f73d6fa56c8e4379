import apps.bookings.models
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('spaces', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Reservation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('confirmation_number', models.CharField(default=apps.bookings.models.generate_confirmation_number, editable=False, max_length=40, unique=True)),
                ('date', models.DateField()),
                ('start_time', models.TimeField(blank=True, null=True)),
                ('end_time', models.TimeField(blank=True, null=True)),
                ('reservation_type', models.CharField(choices=[('hourly', "À l'heure"), ('daily', 'À la journée'), ('weekly', 'À la semaine'), ('monthly', 'Au mois')], default='hourly', max_length=20)),
                ('number_of_people', models.PositiveSmallIntegerField(default=1)),
                ('status', models.CharField(choices=[('pending', 'En attente de validation'), ('confirmed', 'Confirmée'), ('cancelled', 'Annulée'), ('completed', 'Terminée')], default='pending', max_length=20)),
                ('attendance_status', models.CharField(blank=True, choices=[('present', 'Présent'), ('absent', 'Absent')], max_length=20)),
                ('base_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('services_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('total_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('additional_services', models.JSONField(blank=True, default=list)),
                ('contact_name', models.CharField(blank=True, max_length=255)),
                ('contact_email', models.EmailField(blank=True, max_length=254)),
                ('contact_phone', models.CharField(blank=True, max_length=30)),
                ('company_name', models.CharField(blank=True, max_length=255)),
                ('message', models.TextField(blank=True)),
                ('invoice_option', models.BooleanField(default=False)),
                ('invoice_details', models.JSONField(blank=True, null=True)),
                ('is_partial_privatization', models.BooleanField(default=False)),
                ('requires_payment', models.BooleanField(default=True)),
                ('payment_status', models.CharField(choices=[('unpaid', 'Non payé'), ('pending', 'En attente'), ('paid', 'Payé'), ('partial', 'Partiellement payé'), ('refunded', 'Remboursé'), ('failed', 'Échec')], default='unpaid', max_length=20)),
                ('capture_method', models.CharField(blank=True, choices=[('automatic', 'Automatique'), ('manual', 'Empreinte bancaire'), ('deferred', 'Carte enregistrée')], max_length=20)),
                ('deposit_amount', models.PositiveIntegerField(default=0, help_text="Montant de l'empreinte, en centimes.")),
                ('stripe_payment_intent_id', models.CharField(blank=True, max_length=255, null=True, unique=True)),
                ('stripe_setup_intent_id', models.CharField(blank=True, max_length=255, null=True, unique=True)),
                ('stripe_customer_id', models.CharField(blank=True, max_length=255)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('cancellation_reason', models.CharField(blank=True, max_length=500)),
                ('cancellation_fee', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('refund_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('cancelled_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('space', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='reservations', to='spaces.spaceconfiguration')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='reservations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Réservation',
                'verbose_name_plural': 'Réservations',
                'ordering': ['-date', '-start_time'],
                'constraints': [models.CheckConstraint(condition=models.Q(('start_time__isnull', True), ('end_time__isnull', True), ('end_time__gt', models.F('start_time')), _connector='OR'), name='reservation_valid_times')],
                'indexes': [
                    models.Index(fields=['space', 'date'], name='reservation_space_date_idx'),
                    models.Index(fields=['status', 'date'], name='reservation_status_date_idx'),
                ],
            },
        ),
    ]
