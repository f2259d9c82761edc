from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ClassificationRun',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('url', models.URLField(max_length=2048)),
                ('success', models.BooleanField(default=False)),
                ('page_title', models.CharField(blank=True, max_length=500)),
                ('error', models.TextField(blank=True)),
                ('topics', models.JSONField(blank=True, default=list)),
                ('topic_limit', models.PositiveSmallIntegerField(default=10)),
                ('total_time', models.FloatField(default=0.0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
    ]
