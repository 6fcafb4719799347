"""Build configuration parsing and validation."""

import os
import attr
import logging

from io import StringIO
from qemu_image.helpers import as_bool
from qemu_image.state import ExpectedError
from voluptuous import Any, Coerce, Invalid, Optional, Schema
from yaml import YAMLError, load
from yaml.loader import SafeLoader


COLON = ':'
SUPPORTED_FORMATS = ('qcow2', 'raw')
_logger = logging.getLogger('qemu-image')


class ConfigurationError(ExpectedError):
    """The build configuration is invalid."""


# By default PyYAML allows duplicate mapping keys, even though YAML itself
# prohibits this.  We can't validate this after parsing because PyYAML just
# gives us a normal dictionary, so reject a key seen twice while loading.

class StrictLoader(SafeLoader):
    def construct_mapping(self, node):
        pairs = self.construct_pairs(node)
        mapping = {}
        for key, value in pairs:
            if key in mapping:
                raise ConfigurationError('Duplicate key: {}'.format(key))
            mapping[key] = value
        return mapping


StrictLoader.add_constructor(
    'tag:yaml.org,2002:map', StrictLoader.construct_mapping)


def Format(v):
    """Verify supported output formats."""
    if v not in SUPPORTED_FORMATS:
        raise ValueError(v)
    return v


Boolean = Any(bool, Coerce(as_bool))


ConfigYAML = Schema({
    Optional('source'): str,
    Optional('output-dir', default='output'): str,
    Optional('vm-name'): str,
    Optional('format', default='qcow2'): Format,
    Optional('disk-image', default=False): Boolean,
    Optional('use-backing-file', default=False): Boolean,
    Optional('force', default=False): Boolean,
})


@attr.s
class BuildConfig:
    output_dir = attr.ib()
    vm_name = attr.ib()
    format = attr.ib(default='qcow2')
    disk_image = attr.ib(default=False)
    use_backing_file = attr.ib(default=False)
    force = attr.ib(default=False)
    source = attr.ib(default=None)


def default_vm_name(source, image_format):
    if source is None:
        stem = 'disk'
    else:
        stem = os.path.splitext(os.path.basename(source))[0]
    return '{}.{}'.format(stem, image_format)


def validate(config):
    """Check the relationships between configuration values.

    :param config: The configuration to check.
    :type config: BuildConfig
    :raises ConfigurationError: If the configuration is inconsistent.
    """
    if config.format not in SUPPORTED_FORMATS:
        raise ConfigurationError(
            'Unsupported format: {} (use one of: {})'.format(
                config.format, ', '.join(SUPPORTED_FORMATS)))
    if config.use_backing_file:
        if not config.disk_image or config.format != 'qcow2':
            raise ConfigurationError(
                'use-backing-file can only be enabled for qcow2 images '
                'and when disk-image is true')
    return config


def parse(stream_or_string, **overrides):
    """Parse the YAML read from the stream or string.

    :param stream_or_string: Either a string or a file-like object containing
        the build configuration.  If stream is given, it must be open for
        reading with a UTF-8 encoding.
    :type stream_or_string: str or file-like object
    :param overrides: Values which replace the ones from the YAML, keyed by
        `BuildConfig` attribute name.  None values are ignored.
    :return: The validated build configuration.
    :rtype: BuildConfig
    :raises ConfigurationError: If the configuration is invalid.
    """
    stream = (StringIO(stream_or_string)
              if isinstance(stream_or_string, str)
              else stream_or_string)
    try:
        yaml = load(stream, Loader=StrictLoader)
    except YAMLError as error:
        raise ConfigurationError(
            'Configuration file is not valid YAML') from error
    except UnicodeDecodeError as error:
        raise ConfigurationError(
            'Configuration file is not UTF-8 encoded') from error
    if yaml is None:
        yaml = {}
    try:
        validated = ConfigYAML(yaml)
    except Invalid as error:
        if len(error.path) == 0:
            raise ConfigurationError('Invalid configuration') from error
        path = COLON.join(str(component) for component in error.path)
        raise ConfigurationError(
            'Invalid configuration @ {}'.format(path)) from error
    values = dict(
        source=validated.get('source'),
        output_dir=validated['output-dir'],
        vm_name=validated.get('vm-name'),
        format=validated['format'],
        disk_image=validated['disk-image'],
        use_backing_file=validated['use-backing-file'],
        force=validated['force'],
        )
    values.update(
        (key, value) for key, value in overrides.items()
        if value is not None)
    if values['vm_name'] is None:
        values['vm_name'] = default_vm_name(
            values['source'], values['format'])
    config = BuildConfig(**values)
    _logger.debug('Build configuration: {}'.format(config))
    return validate(config)
