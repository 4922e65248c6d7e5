from django.conf import settings


def mikro_alias() -> str:
    return getattr(settings, "MIKRO_DATABASE_ALIAS", "mikro")


class MikroRouter:
    """Keep Django-managed tables off the Mikro database.

    Mikro owns its schema; this project only runs raw, parameterized SQL against
    it through ``apps.mikro.client.MikroClient``. Model reads/writes are left to
    the default routing.
    """

    def db_for_read(self, model, **hints):
        return None

    def db_for_write(self, model, **hints):
        return None

    def allow_relation(self, obj1, obj2, **hints):
        return None

    def allow_migrate(self, db, app_label, model_name=None, **hints):
        if db == mikro_alias():
            return False
        return None
