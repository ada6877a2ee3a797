import decimal

import django.utils.timezone
from django.db import migrations, models

import decretos.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Decreto',
            fields=[
                ('id', models.CharField(default=decretos.models._nuevo_id, editable=False, max_length=64, primary_key=True, serialize=False)),
                ('solicitud_type', models.CharField(choices=[('PA', 'Permiso Administrativo'), ('FL', 'Feriado Legal')], default='PA', max_length=2)),
                ('materia', models.CharField(default='Decreto Exento', max_length=100)),
                ('acto', models.CharField(blank=True, default='', max_length=20)),
                ('funcionario', models.CharField(max_length=150)),
                ('rut', models.CharField(db_index=True, max_length=15)),
                ('periodo', models.CharField(default=decretos.models._anio_actual, max_length=10)),
                ('cantidad_dias', models.DecimalField(decimal_places=1, default=decimal.Decimal('1'), max_digits=5)),
                ('fecha_inicio', models.DateField(blank=True, null=True)),
                ('tipo_jornada', models.CharField(default='(Jornada completa)', max_length=30)),
                ('dias_haber', models.DecimalField(decimal_places=1, default=decimal.Decimal('6'), max_digits=5)),
                ('fecha_decreto', models.DateField(blank=True, null=True)),
                ('ra', models.CharField(default='MGA', max_length=20)),
                ('emite', models.CharField(default='mga', max_length=20)),
                ('observaciones', models.TextField(blank=True, default='')),
                ('creado_en', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Decreto',
                'verbose_name_plural': 'Decretos',
                'ordering': ['-creado_en'],
            },
        ),
        migrations.CreateModel(
            name='DiaFeriado',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('fecha', models.DateField(unique=True)),
                ('descripcion', models.CharField(max_length=100)),
            ],
            options={
                'ordering': ['-fecha'],
            },
        ),
        migrations.CreateModel(
            name='Funcionario',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('nombre', models.CharField(max_length=150)),
                ('rut', models.CharField(max_length=15, unique=True)),
            ],
            options={
                'ordering': ['nombre'],
            },
        ),
        migrations.CreateModel(
            name='Instantanea',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('creada_en', models.DateTimeField(default=django.utils.timezone.now)),
                ('datos', models.JSONField(default=list)),
            ],
            options={
                'ordering': ['-id'],
            },
        ),
    ]
