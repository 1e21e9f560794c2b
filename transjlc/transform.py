#! /usr/bin/env python
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
transjlc.transform
==================
**Gerber content rewriting**

Text level rewriting of Gerber files. The :py:class:`GerberTransformer` does not parse the file, it only applies three
line-based rewrites:

1. It prepends the two-line generator header the manufacturer's intake expects.
2. Optionally, it adds the ``G54`` prefix to bare aperture selects (``D10*`` becomes ``G54D10*``).
3. It inserts a fingerprint aperture, a near-duplicate of an existing aperture whose size encodes two digits of the
   file's MD5 hash, and renumbers all later apertures to make room for it.
"""

import hashlib
import random
import re
import warnings
from dataclasses import dataclass, field
from datetime import datetime

from .utils import FingerprintSkippedWarning


HEADER_TEMPLATE = 'G04 EasyEDA Pro v2.2.42.2, {timestamp}*\nG04 Gerber Generator version 0.3*\n'
TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'

#: Files larger than this many bytes (UTF-8 encoded) do not get a fingerprint aperture.
MAX_HASH_FILE_SIZE = 30_000_000
#: Highest aperture number. Never renumbered.
MAX_APERTURE_NUMBER = 9999
#: Number of lines scanned for aperture definitions before only macro/definition lines are followed.
APERTURE_SCAN_LINES = 200
#: Prepended to the hashed content of files imported from a PCB document.
IMPORTED_HASH_MARKER = '494d'

APERTURE_DEFINITION_RE = re.compile(r'^%ADD(\d{2,4})\D.*')
DEFINITION_OR_MACRO_RE = re.compile(r'^%AD|^%AM')
# D01/D02/D03 are operations, not aperture selects, and a D code right after a coordinate is an operation as well.
BARE_SELECT_RE = re.compile(r'(?<![0-9A-Z])(D[1-9][0-9]{1,3}\*)')
RENUMBER_RE = re.compile(r'^(%ADD|G54D|D)(\d{2,4})(.*)$', re.MULTILINE)
APERTURE_SIZE_RE = re.compile(r',([\d.]+)')


def _is_prefixing_exempt(line):
    return '%ADD' in line or 'G54D' in line


def has_missing_aperture_prefix(content):
    """ Return :py:obj:`True` if :py:obj:`content` contains an aperture select like ``D10*`` without the ``G54``
    prefix. """
    return any(BARE_SELECT_RE.search(line) for line in content.splitlines() if not _is_prefixing_exempt(line))


def add_aperture_prefix(content):
    """ Rewrite bare aperture selects ``D<n>*`` to ``G54D<n>*``. Lines containing aperture definitions or already
    prefixed selects are left alone. """
    return '\n'.join(line if _is_prefixing_exempt(line) else BARE_SELECT_RE.sub(r'G54\1', line)
                     for line in content.split('\n'))


def hash_suffix(content, imported_pcb_doc=False):
    """ Two decimal digits derived from the MD5 hash of :py:obj:`content`. Deterministic for a given input. """
    data = IMPORTED_HASH_MARKER + content if imported_pcb_doc else content
    digest = hashlib.md5(data.encode('utf-8', 'surrogateescape')).hexdigest()
    return f'{int(digest[-2:], 16) % 100:02d}'


@dataclass
class ApertureTable:
    """ Aperture definitions found near the top of a Gerber file, in file order. """
    definitions: list = field(default_factory=list)
    numbers: list = field(default_factory=list)
    max_number: int = MAX_APERTURE_NUMBER

    def __len__(self):
        return len(self.definitions)


def scan_apertures(content):
    """ Collect the contiguous block of ``%ADD`` aperture definitions at the start of :py:obj:`content`.

    Scanning stops at the first non-definition line after the first definition. Beyond the first
    :py:obj:`APERTURE_SCAN_LINES` lines, scanning only continues across definition or macro lines.
    """
    table = ApertureTable()
    found = False

    for index, line in enumerate(content.split('\n')):
        if index > APERTURE_SCAN_LINES and (not DEFINITION_OR_MACRO_RE.match(line)
                                            or index > APERTURE_SCAN_LINES + MAX_APERTURE_NUMBER * 2):
            break

        if (match := APERTURE_DEFINITION_RE.match(line)):
            table.definitions.append(line)
            table.numbers.append(int(match[1]))
            found = True
        elif found:
            break

    return table


def renumber_apertures(content, target, max_number=MAX_APERTURE_NUMBER):
    """ Increment every aperture number at or above :py:obj:`target` by one, both in definitions and in selects.
    :py:obj:`max_number` itself is never touched. """
    def replace(match):
        prefix, number, rest = match.groups()
        number = int(number)
        if number < target or number == max_number:
            return match[0]
        return f'{prefix}{number + 1}{rest}'

    return RENUMBER_RE.sub(replace, content)


def insert_definition(content, definition, target):
    """ Place :py:obj:`definition` in front of the definition of aperture ``target + 1``. Without one, place it after
    the unit statement before the first graphics command, or at the very end. """
    next_definition = re.compile(fr'^%ADD{target + 1}(\D)', re.MULTILINE)
    if (match := next_definition.search(content)):
        return content[:match.start()] + definition + '\n' + content[match.start():]

    lines = content.split('\n')
    for index, line in enumerate(lines):
        if line.startswith('%MO'):
            for offset, other in enumerate(lines[index+1:], start=index+1):
                if other.startswith('%LP') or other.startswith('G'):
                    lines.insert(offset, definition)
                    return '\n'.join(lines)
            break

    lines.append(definition)
    return '\n'.join(lines)


class GerberTransformer:
    """ Rewrites Gerber file contents for upload.

    :param ignore_hash: Skip the fingerprint aperture.
    :param imported_pcb_doc: Mark the hash input as coming from an imported PCB document.
    :param max_hash_file_size: Files longer than this (in UTF-8 bytes) are passed through without fingerprint.
    :param rng: :py:class:`random.Random` instance used for slot selection and the size prefix.
    :param clock: Callable returning the :py:class:`~datetime.datetime` used in the header.
    """

    def __init__(self, ignore_hash=False, imported_pcb_doc=False, max_hash_file_size=MAX_HASH_FILE_SIZE, rng=None,
                 clock=datetime.now):
        self.ignore_hash = ignore_hash
        self.imported_pcb_doc = imported_pcb_doc
        self.max_hash_file_size = max_hash_file_size
        self.rng = rng or random.Random()
        self.clock = clock

    def transform(self, content, prefix_apertures=False):
        """ Apply header, optional aperture prefixing and fingerprint to a Gerber file's contents. """
        content = self.add_header(content)
        if prefix_apertures:
            content = add_aperture_prefix(content)
        return self.add_fingerprint(content)

    def add_header(self, content):
        header = HEADER_TEMPLATE.format(timestamp=self.clock().strftime(TIMESTAMP_FORMAT))
        return header + content.replace('\r\n', '\n').replace('\r', '\n')

    def select_slot(self, table):
        """ Choose the aperture the fingerprint is derived from.

        :returns: ``(target number, template definition or None)``
        """
        count = len(table.numbers)
        index = min(5 + self.rng.randrange(5), count - 1 if count > 1 else 0)
        selection = count if count <= 5 else index

        if selection > 0 and index < len(table.definitions):
            return table.numbers[index], table.definitions[index]

        if not table.numbers:
            target = 10
        elif count <= 5:
            target = table.numbers[-1] + 1
        else:
            target = 10
        return min(target, table.max_number), None

    def fingerprint_size(self, content):
        size = f'{self.rng.random():.2f}{hash_suffix(content, self.imported_pcb_doc)}'
        if float(size) == 0:
            size = '0.0100'
        return size

    def add_fingerprint(self, content):
        if self.ignore_hash:
            return content

        nbytes = len(content.encode('utf-8', 'surrogateescape'))
        if nbytes > self.max_hash_file_size:
            warnings.warn(f'Gerber data of {nbytes} bytes exceeds fingerprint size limit of '
                          f'{self.max_hash_file_size}, leaving it unchanged.', FingerprintSkippedWarning)
            return content

        table = scan_apertures(content)
        target, template = self.select_slot(table)
        size = self.fingerprint_size(content)

        if template is not None:
            definition = APERTURE_SIZE_RE.sub(f',{size}', template, count=1)
        else:
            definition = f'%ADD{target}C,{size}*%'

        content = renumber_apertures(content, target, table.max_number)
        return insert_definition(content, definition, target)
