import os


# Try to get the version number, which setup.py writes out next to this
# module.  When running straight from a source tree that hasn't been through
# setup.py yet, fall back to a development version.
__version__ = os.environ.get('QEMU_IMAGE_VERSION')
if __version__ is None:                                      # pragma: nocover
    try:
        with open(os.path.join(os.path.dirname(__file__), 'version.txt'),
                  encoding='utf-8') as fp:
            __version__ = fp.read().strip()
    except FileNotFoundError:
        # Probably, setup.py hasn't been run yet to generate the version.txt.
        __version__ = 'dev'
