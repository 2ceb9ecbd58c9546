from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Category',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100, unique=True)),
                ('slug', models.SlugField(unique=True)),
                ('order', models.PositiveIntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
            ],
            options={
                'ordering': ['order', 'name'],
                'indexes': [models.Index(fields=['order'], name='idx_category_order')],
            },
        ),
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200)),
                ('slug', models.SlugField(unique=True)),
                ('price', models.DecimalField(decimal_places=2, max_digits=10, verbose_name='Precio (USD)')),
                ('summary', models.CharField(blank=True, max_length=300, verbose_name='Resumen')),
                ('is_active', models.BooleanField(default=True, verbose_name='Activo')),
                ('carousel_position', models.PositiveIntegerField(blank=True, null=True, verbose_name='Posición en el carrusel')),
                ('photo_version', models.PositiveIntegerField(default=0, editable=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('category', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='products', to='storefront.category')),
            ],
            options={
                'ordering': ['-id'],
                'indexes': [
                    models.Index(fields=['is_active', '-id'], name='idx_product_active_id'),
                    models.Index(fields=['carousel_position'], name='idx_product_carousel'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('carousel_position__isnull', False)), fields=('carousel_position',), name='uniq_product_carousel_position'),
                    models.CheckConstraint(condition=models.Q(('carousel_position__isnull', True), ('carousel_position__gte', 1), _connector='OR'), name='chk_product_carousel_position_positive'),
                ],
            },
        ),
    ]
