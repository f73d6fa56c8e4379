import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='DailyTurnover',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(unique=True)),
                ('ht', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, verbose_name='Montant HT')),
                ('ttc', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, verbose_name='Montant TTC')),
                ('tva', models.DecimalField(decimal_places=2, default=Decimal('0.00'), editable=False, max_digits=10, verbose_name='TVA')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': "Chiffre d'affaires journalier",
                'verbose_name_plural': "Chiffres d'affaires journaliers",
                'ordering': ['-date'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='B2BRevenue',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(unique=True)),
                ('ht', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, verbose_name='Montant HT')),
                ('ttc', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, verbose_name='Montant TTC')),
                ('tva', models.DecimalField(decimal_places=2, default=Decimal('0.00'), editable=False, max_digits=10, verbose_name='TVA')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('notes', models.TextField(blank=True)),
            ],
            options={
                'verbose_name': "Chiffre d'affaires B2B",
                'verbose_name_plural': "Chiffres d'affaires B2B",
                'ordering': ['-date'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='CashEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(unique=True)),
                ('b2b_services', models.JSONField(blank=True, default=list)),
                ('expenses', models.JSONField(blank=True, default=list)),
                ('bank_transfer', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, verbose_name='Virement')),
                ('cash', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, verbose_name='Espèces')),
                ('card', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, verbose_name='CB')),
                ('contactless', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, verbose_name='CB sans contact')),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Contrôle de caisse',
                'verbose_name_plural': 'Contrôles de caisse',
                'ordering': ['-date'],
            },
        ),
        migrations.CreateModel(
            name='CashRegisterCount',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('count_details', models.JSONField(blank=True, default=dict, help_text='bills, coins : [{value, quantity}]')),
                ('counted_by_name', models.CharField(blank=True, max_length=150)),
                ('difference', models.DecimalField(blank=True, decimal_places=2, help_text='Écart avec le comptage précédent.', max_digits=10, null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('counted_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Comptage du fond de caisse',
                'verbose_name_plural': 'Comptages du fond de caisse',
                'ordering': ['-date', '-created_at'],
                'indexes': [models.Index(fields=['date'], name='cash_count_date_idx')],
            },
        ),
    ]
