import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

  initial = True

  dependencies = [
    ('auth', '0012_alter_user_first_name_max_length'),
  ]

  operations = [
    migrations.CreateModel(
      name='User',
      fields=[
        ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
        ('password', models.CharField(max_length=128, verbose_name='password')),
        ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
        ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
        ('handle', models.CharField(max_length=100, unique=True)),
        ('display_name', models.CharField(blank=True, max_length=100)),
        ('avatar_url', models.URLField(blank=True, default='')),
        ('wallet_address', models.CharField(blank=True, default='', max_length=42)),
        ('min_donation', models.DecimalField(decimal_places=6, default=1, max_digits=18)),
        ('voice_name', models.CharField(blank=True, default='', max_length=100)),
        ('voice_rate', models.FloatField(default=1.0)),
        ('voice_pitch', models.FloatField(default=1.0)),
        ('gif_url', models.URLField(blank=True, default='')),
        ('is_active', models.BooleanField(default=True)),
        ('is_staff', models.BooleanField(default=False)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
        ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
      ],
      options={
        'abstract': False,
      },
    ),
    migrations.CreateModel(
      name='Donation',
      fields=[
        ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ('donor_address', models.CharField(max_length=42)),
        ('donor_name', models.CharField(blank=True, default='', max_length=255)),
        ('amount', models.DecimalField(decimal_places=6, max_digits=18)),
        ('message', models.TextField(blank=True, null=True)),
        ('source_chain', models.CharField(max_length=50)),
        ('source_tx_hash', models.CharField(max_length=66, unique=True)),
        ('forward_tx_hash', models.CharField(blank=True, max_length=66, null=True)),
        ('status', models.CharField(choices=[('PENDING', 'Pending'), ('FORWARDING', 'Forwarding'), ('COMPLETED', 'Completed'), ('FAILED', 'Failed')], default='PENDING', max_length=20)),
        ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
        ('streamer', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='donations', to=settings.AUTH_USER_MODEL)),
      ],
      options={
        'ordering': ['-created_at'],
        'indexes': [models.Index(fields=['streamer', 'status', '-created_at'], name='donation_streamer_status_idx')],
      },
    ),
  ]
