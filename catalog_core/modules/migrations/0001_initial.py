# Generated manually for the module catalog app

from django.db import migrations, models
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='SystemModule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('namespace', models.CharField(max_length=200)),
                ('module_id', models.CharField(max_length=200)),
                ('version', models.CharField(help_text='Release label (e.g., 1.0.0)', max_length=64)),
                ('description', models.TextField(blank=True)),
                ('schema', models.JSONField(default=dict)),
                ('ui', models.JSONField(default=dict)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'db_table': 'system_modules',
                'ordering': ['namespace', 'module_id', 'created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='systemmodule',
            index=models.Index(fields=['namespace', 'module_id', 'created_at'], name='system_module_lookup_idx'),
        ),
        migrations.AddConstraint(
            model_name='systemmodule',
            constraint=models.UniqueConstraint(fields=('namespace', 'module_id', 'version'), name='uq_system_module_version'),
        ),
    ]
