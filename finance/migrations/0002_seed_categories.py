from django.db import migrations

CATEGORIES = [
    ('Infak', 'INCOME', 'Infak umum jamaah', '#10B981', 'heart'),
    ('Zakat', 'INCOME', 'Zakat fitrah dan maal', '#059669', 'wallet'),
    ('Wakaf', 'INCOME', 'Wakaf tanah, bangunan, dan uang', '#047857', 'building'),
    ('Sedekah', 'INCOME', 'Sedekah umum', '#34D399', 'gift'),
    ('Operasional', 'EXPENSE', 'Biaya operasional masjid (listrik, air, dll)', '#F59E0B', 'settings'),
    ('Kebersihan', 'EXPENSE', 'Biaya kebersihan dan peralatan', '#3B82F6', 'sparkles'),
    ('Pembangunan', 'EXPENSE', 'Biaya pembangunan dan renovasi', '#8B5CF6', 'hammer'),
    ('Kegiatan', 'EXPENSE', 'Biaya kegiatan masjid', '#EC4899', 'calendar'),
]


def create_categories(apps, schema_editor):
    Category = apps.get_model('finance', 'Category')
    for name, type_, description, color, icon in CATEGORIES:
        Category.objects.get_or_create(
            name=name,
            defaults={'type': type_, 'description': description, 'color': color, 'icon': icon},
        )


def remove_categories(apps, schema_editor):
    Category = apps.get_model('finance', 'Category')
    Category.objects.filter(name__in=[c[0] for c in CATEGORIES], transactions__isnull=True).delete()


class Migration(migrations.Migration):
    dependencies = [
        ('finance', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(create_categories, remove_categories),
    ]
