import apps.promo.models
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PromoCode',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=50)),
                ('token', models.CharField(default=apps.promo.models.generate_token, max_length=64, unique=True)),
                ('description', models.CharField(blank=True, max_length=255)),
                ('discount_type', models.CharField(choices=[('percentage', 'Pourcentage'), ('fixed', 'Montant fixe'), ('free_item', 'Article offert')], default='percentage', max_length=20)),
                ('discount_value', models.DecimalField(decimal_places=2, default=0, max_digits=8, validators=[django.core.validators.MinValueValidator(0)])),
                ('valid_from', models.DateTimeField()),
                ('valid_until', models.DateTimeField()),
                ('max_uses', models.PositiveIntegerField(default=0, help_text='0 = illimité')),
                ('current_uses', models.PositiveIntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('deactivated_at', models.DateTimeField(blank=True, null=True)),
                ('marketing_title', models.CharField(blank=True, max_length=120)),
                ('marketing_message', models.TextField(blank=True)),
                ('marketing_image_url', models.URLField(blank=True)),
                ('cta_text', models.CharField(blank=True, default='Révéler le code', max_length=60)),
                ('view_count', models.PositiveIntegerField(default=0)),
                ('copy_count', models.PositiveIntegerField(default=0)),
                ('scan_count', models.PositiveIntegerField(default=0)),
                ('reveal_count', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Code promo',
                'verbose_name_plural': 'Codes promo',
                'ordering': ['-created_at'],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('is_active', True)), fields=('is_active',), name='single_active_promo'),
                    models.CheckConstraint(condition=models.Q(('valid_until__gt', models.F('valid_from'))), name='promo_valid_window'),
                ],
            },
        ),
        migrations.CreateModel(
            name='PromoEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('event_type', models.CharField(choices=[('view', 'Affichage'), ('copy', 'Copie'), ('scan', 'Scan'), ('reveal', 'Révélation')], max_length=10)),
                ('session_id', models.CharField(blank=True, max_length=64)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('promo', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='events', to='promo.promocode')),
            ],
            options={
                'ordering': ['created_at'],
                'indexes': [models.Index(fields=['promo', 'event_type', 'created_at'], name='promo_event_type_idx')],
            },
        ),
    ]
