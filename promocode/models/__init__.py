# promocode/models/__init__.py
# Import all models here so SQLAlchemy registers them into Base.metadata.

from promocode.models.user import User  # noqa: F401
from promocode.models.tenant import Tenant  # noqa: F401

from promocode.models.promotional_code import PromotionalCode, PromoCodeStatus  # noqa: F401
from promocode.models.object_versioning import ObjectVersioning  # noqa: F401
