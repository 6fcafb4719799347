#!/usr/bin/env python3

import sys

from setuptools import find_packages, setup


def require_python(minimum):
    """Require at least a minimum Python version.

    The version number is expressed in terms of `sys.hexversion`.  E.g. to
    require a minimum of Python 2.6, use::

    >>> require_python(0x206000f0)

    :param minimum: Minimum Python version supported.
    :type minimum: integer
    """
    if sys.hexversion < minimum:
        hversion = hex(minimum)[2:]
        if len(hversion) % 2 != 0:
            hversion = '0' + hversion
        split = list(hversion)
        parts = []
        while split:
            parts.append(int(''.join((split.pop(0), split.pop(0))), 16))
        major, minor, micro, release = parts
        if release == 0xf0:
            print('Python {}.{}.{} or better is required'.format(
                major, minor, micro))
        else:
            print('Python {}.{}.{} ({}) or better is required'.format(
                major, minor, micro, hex(release)[2:]))
        sys.exit(1)

require_python(0x30800f0)


__version__ = '0.1.0'
# Write the version out to the package directory so `qemu-image --version`
# can display it.
with open('qemu_image/version.txt', 'w', encoding='utf-8') as outfp:
    print(__version__, file=outfp)


setup(
    name='qemu-image',
    version=__version__,
    description='Prepare the primary disk of a QEMU virtual machine image',
    packages=find_packages(),
    include_package_data=True,
    package_data={'qemu_image': ['version.txt']},
    install_requires=[
        'attrs',
        'PyYAML',
        'voluptuous<0.13',
        ],
    extras_require={
        'test': ['nose2'],
        },
    entry_points={
        'console_scripts': ['qemu-image = qemu_image.__main__:main'],
        },
    license='GPLv3',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'Intended Audience :: System Administrators',
        'Natural Language :: English',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Software Development :: Build Tools',
        'Topic :: System :: Emulators',
        ],
    )
