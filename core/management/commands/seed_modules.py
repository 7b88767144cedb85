from django.core.management.base import BaseCommand
from django.db import transaction

from core.models import Module, SubModule
from core.sidebar import MODULE_CONFIG


class Command(BaseCommand):
    help = "Seed/backfill Module and SubModule rows from the sidebar module configuration"

    def add_arguments(self, parser):
        parser.add_argument(
            "--deactivate-missing",
            action="store_true",
            help="Mark modules/sub-modules not in the configuration as inactive",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        created_modules = created_subs = 0
        module_keys, sub_keys = [], []

        for config in MODULE_CONFIG:
            module, created = Module.objects.update_or_create(
                key=config.key,
                defaults={
                    "name": config.name,
                    "scope": config.scope,
                    "display_order": config.order,
                    "is_active": True,
                },
            )
            created_modules += int(created)
            module_keys.append(module.key)

            for position, (key, name, route) in enumerate(config.sub_modules, start=1):
                _, created = SubModule.objects.update_or_create(
                    key=key,
                    defaults={
                        "module": module,
                        "name": name,
                        "route_path": route,
                        "display_order": position,
                        "is_active": True,
                    },
                )
                created_subs += int(created)
                sub_keys.append(key)

        deactivated = 0
        if options["deactivate_missing"]:
            deactivated += Module.objects.exclude(key__in=module_keys).update(is_active=False)
            deactivated += SubModule.objects.exclude(key__in=sub_keys).update(is_active=False)

        self.stdout.write(self.style.SUCCESS(
            f"Modules seeded. {created_modules} new modules, {created_subs} new sub-modules, "
            f"{deactivated} deactivated. Total: {Module.objects.count()} modules, "
            f"{SubModule.objects.count()} sub-modules."
        ))
