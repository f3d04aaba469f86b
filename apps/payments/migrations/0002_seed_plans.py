from decimal import Decimal

from django.db import migrations

PLANS = [
    {
        'id': 'free',
        'name': 'Free',
        'description': 'Perfect for personal projects and trying out the platform',
        'tier': 'free',
        'price': Decimal('0'),
        'popular': False,
        'sort_order': 0,
        'features': [
            'Unlimited projects in your Google Drive',
            'Basic kanban boards',
            'Team collaboration via email',
            'Basic Google Drive integration',
            'Community support',
        ],
    },
    {
        'id': 'managed_api',
        'name': 'Managed API',
        'description': 'Skip the technical setup - we handle Google API configuration',
        'tier': 'managed_api',
        'price': Decimal('9'),
        'popular': True,
        'sort_order': 1,
        'features': [
            'Everything in Free',
            'Pre-configured Google API access',
            'Higher API rate limits',
            'No technical setup required',
            'Priority email support',
            'Advanced Google Drive features',
        ],
    },
    {
        'id': 'premium',
        'name': 'Premium',
        'description': 'Advanced features for power users and teams',
        'tier': 'premium',
        'price': Decimal('19'),
        'popular': False,
        'sort_order': 2,
        'features': [
            'Everything in Managed API',
            'AI-powered project insights',
            'Custom automations and workflows',
            'Advanced reporting and analytics',
            'Custom integrations (Slack, Discord)',
            'Time tracking and productivity metrics',
            'Priority chat support',
        ],
    },
]


def seed_plans(apps, schema_editor):
    SubscriptionPlan = apps.get_model('payments', 'SubscriptionPlan')
    for plan in PLANS:
        defaults = {key: value for key, value in plan.items() if key != 'id'}
        SubscriptionPlan.objects.update_or_create(id=plan['id'], defaults=defaults)


def remove_plans(apps, schema_editor):
    SubscriptionPlan = apps.get_model('payments', 'SubscriptionPlan')
    SubscriptionPlan.objects.filter(id__in=[plan['id'] for plan in PLANS]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('payments', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed_plans, remove_plans),
    ]
