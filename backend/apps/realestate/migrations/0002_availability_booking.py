# Generated migration for realestate app
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    dependencies = [
        ('realestate', '0001_initial'),
        ('bookings', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='availability',
            name='booking',
            field=models.ForeignKey(blank=True, help_text='Booking that blocked this date', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='blocked_dates', to='bookings.booking'),
        ),
    ]
