#!/usr/bin/env python
# -*- coding: utf-8 -*-
#
# Copyright 2025 The transjlc authors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#

"""
transjlc.utils
==============
**Shared helpers**

Length units, the SVG :py:class:`.Tag` helper, and the exception and warning classes raised throughout transjlc.
"""

import textwrap
from pathlib import Path


class UnknownStatementWarning(Warning):
    """ The Gerber reader found a statement it does not understand. """
    pass

class FingerprintSkippedWarning(Warning):
    """ A Gerber file was too large for the fingerprint aperture to be inserted. """
    pass

class DuplicateLayerWarning(Warning):
    """ Two input files were mapped onto the same output layer. The later one wins. """
    pass


class ConversionError(Exception):
    """ Base class of all errors raised by transjlc. """
    pass

class NoMatchingDialectError(ConversionError):
    """ None of the built-in EDA naming dialects recognizes enough of the input files. """

    def __init__(self, filenames):
        self.filenames = list(filenames)
        super().__init__(f'No EDA naming dialect matches the {len(self.filenames)} input file(s)')

class UnsupportedDialectError(ConversionError, ValueError):
    def __init__(self, name):
        self.name = name
        super().__init__(f'Unsupported EDA dialect: {name!r}')

class InvalidGerberFormatError(ConversionError):
    def __init__(self, reason, path=None):
        self.reason, self.path = reason, path
        super().__init__(f'{path}: {reason}' if path else reason)

class MissingAssetError(ConversionError, FileNotFoundError):
    def __init__(self, name):
        self.name = name
        super().__init__(f'Embedded asset not found: {name}')

class ConversionIOError(ConversionError, OSError):
    """ Reading or writing a file failed. The original :py:obj:`OSError` is available as ``__cause__``. """

    def __init__(self, path, operation):
        self.path, self.operation = path, operation
        super().__init__(f'Failed to {operation} file: {path}')


class LengthUnit:
    """ Convenience length unit class. Use the :py:obj:`MM` and :py:obj:`Inch` singletons. """

    def __init__(self, name, shorthand, this_in_mm):
        self.name = name
        self.shorthand = shorthand
        self.factor = this_in_mm

    def __hash__(self):
        return hash((self.name, self.shorthand, self.factor))

    def convert_from(self, unit, value):
        """ Convert :py:obj:`value` from :py:obj:`unit` into this unit.

        :param unit: ``'mm'``, ``'inch'``, :py:obj:`MM` or :py:obj:`Inch`
        :param value: Value to convert, or :py:obj:`None`
        """
        if isinstance(unit, str):
            unit = units[unit]

        if unit == self or unit is None or value is None:
            return value

        return value * unit.factor / self.factor

    def __call__(self, value, unit):
        return self.convert_from(unit, value)

    def __eq__(self, other):
        if isinstance(other, str):
            return other.lower() in (self.name, self.shorthand)
        else:
            return id(self) == id(other)

    def __str__(self):
        return self.shorthand

    def __repr__(self):
        return f'<LengthUnit {self.name}>'


MILLIMETERS_PER_INCH = 25.4
Inch = LengthUnit('inch', 'in', MILLIMETERS_PER_INCH)
MM = LengthUnit('millimeter', 'mm', 1)
units = {'inch': Inch, 'mm': MM, None: None}


def min_none(a, b):
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)


def max_none(a, b):
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def sum_bounds(bounds, *, default=None):
    """ Add/union multiple bounding boxes.

    :param bounds: each arg is one bounding box in ``((min_x, min_y), (max_x, max_y))`` format

    :returns: ``((min_x, min_y), (max_x, max_y))``
    :rtype: tuple
    """

    bounds = iter(bounds)

    for (min_x, min_y), (max_x, max_y) in bounds:
        break
    else:
        return default

    for (min_x_2, min_y_2), (max_x_2, max_y_2) in bounds:
        min_x, min_y = min_none(min_x, min_x_2), min_none(min_y, min_y_2)
        max_x, max_y = max_none(max_x, max_x_2), max_none(max_y, max_y_2)

    return ((min_x, min_y), (max_x, max_y))


def fmt_num(value, digits=4):
    """ Format a float for SVG output without trailing zeros, e.g. ``12.5`` instead of ``12.500000``. """
    out = f'{value:.{digits}f}'.rstrip('0').rstrip('.')
    return '0' if out in ('', '-0') else out


XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8" standalone="no"?>'

class Tag:
    """ Helper class to ease creation of SVG. Attribute names are translated on output, with ``__`` becoming ``:`` and
    ``_`` becoming ``-``, so ``xlink__href`` is written as ``xlink:href`` and ``clip_path`` as ``clip-path``. """

    def __init__(self, name, children=None, root=False, **attrs):
        self.name, self.attrs = name, attrs
        self.children = children or []
        self.root = root

    def __str__(self):
        prefix = XML_DECLARATION + '\n' if self.root else ''
        opening = ' '.join([self.name] + [f'{key.replace("__", ":").replace("_", "-")}="{value}"' for key, value in self.attrs.items()])
        if self.children:
            children = '\n'.join(textwrap.indent(str(c), '  ') for c in self.children)
            return f'{prefix}<{opening}>\n{children}\n</{self.name}>'
        else:
            return f'{prefix}<{opening}/>'


def read_file(path):
    try:
        return Path(path).read_bytes()
    except OSError as e:
        raise ConversionIOError(path, 'read') from e


def read_text_file(path):
    """ Read a text file such that any bytes that are not valid UTF-8 survive a round trip through
    :py:func:`write_text_file` unchanged. """
    return read_file(path).decode('utf-8', 'surrogateescape')


def write_text_file(path, content):
    write_file(path, content.encode('utf-8', 'surrogateescape'))


def write_file(path, data):
    try:
        Path(path).write_bytes(data)
    except OSError as e:
        raise ConversionIOError(path, 'write') from e
