from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='DocumentRecord',
            fields=[
                ('doc_id', models.CharField(max_length=255, primary_key=True, serialize=False)),
                ('title', models.CharField(blank=True, default='', max_length=500)),
                ('category', models.CharField(blank=True, max_length=200, null=True)),
                ('date', models.CharField(blank=True, max_length=50, null=True)),
                ('author', models.CharField(blank=True, max_length=255, null=True)),
                ('timestamp', models.BigIntegerField(db_index=True, default=0)),
                ('last_evaluation', models.CharField(blank=True, default='', max_length=20)),
                ('bullish_bearish_score', models.FloatField(default=0)),
                ('summary_headline', models.TextField(blank=True, default='')),
                ('sentiment', models.CharField(default='Neutral', max_length=50)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'documents',
                'ordering': ['-timestamp'],
            },
        ),
        migrations.CreateModel(
            name='AnalysisRecord',
            fields=[
                ('doc_id', models.CharField(max_length=255, primary_key=True, serialize=False)),
                ('result_id', models.CharField(db_index=True, max_length=255)),
                ('timestamp', models.BigIntegerField(db_index=True, default=0)),
                ('user_id', models.CharField(blank=True, default='', max_length=128)),
                ('payload', models.JSONField(default=dict)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'analyses',
                'ordering': ['-timestamp'],
            },
        ),
    ]
