from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('storefront', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ImageAsset',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('content_hash', models.CharField(db_index=True, max_length=64)),
                ('renditions', models.JSONField(default=dict)),
                ('is_primary', models.BooleanField(default=False)),
                ('display_order', models.PositiveIntegerField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='photos', to='storefront.product')),
            ],
            options={
                'ordering': ['display_order', 'id'],
                'indexes': [models.Index(fields=['product', 'content_hash'], name='idx_photo_product_hash')],
                'constraints': [
                    models.UniqueConstraint(fields=('product', 'display_order'), name='uniq_photo_product_display_order'),
                    models.UniqueConstraint(condition=models.Q(('is_primary', True)), fields=('product',), name='uniq_photo_product_primary'),
                    models.CheckConstraint(condition=models.Q(('display_order__gte', 1)), name='chk_photo_display_order_positive'),
                ],
            },
        ),
    ]
