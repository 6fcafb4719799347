import gettext

catalog = gettext.Catalog("qemu-image", fallback=gettext.NullTranslations)

_ = catalog.gettext

__all__ = ('catalog', '_')
