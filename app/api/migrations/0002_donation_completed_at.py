from django.db import migrations, models


class Migration(migrations.Migration):

  dependencies = [
    ('api', '0001_initial'),
  ]

  operations = [
    migrations.AddField(
      model_name='donation',
      name='completed_at',
      field=models.DateTimeField(blank=True, null=True),
    ),
    migrations.AddIndex(
      model_name='donation',
      index=models.Index(fields=['streamer', '-completed_at'], name='donation_streamer_done_idx'),
    ),
  ]
