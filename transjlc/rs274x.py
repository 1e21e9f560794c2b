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
transjlc.rs274x
===============
**Minimal Gerber (RS-274X) reader**

This is not a full Gerber parser. It follows the coordinate stream of a file closely enough to get its bounding box,
its flashes and its region outlines, which is all the colorful silkscreen generation needs. Arcs are reduced to their
end points, aperture macros are only recorded by name and step-repeat blocks are not expanded.
"""

import re
import warnings
from dataclasses import dataclass, field

from .cam import FileSettings
from .utils import MM, Inch, UnknownStatementWarning, InvalidGerberFormatError


@dataclass
class Aperture:
    """ Aperture definition. Standard apertures use the shapes ``C``, ``R``, ``O`` and ``P``, anything else is the
    name of an aperture macro. Parameters are converted to millimeters. """
    number: int
    shape: str
    params: list = field(default_factory=list)

    def bounding_size(self):
        """ Return ``(width, height)`` of this aperture's bounding box in millimeters, or :py:obj:`None` for macros
        other than KiCad's ``RoundRect``. """
        if self.shape in ('C', 'P') and self.params:
            return self.params[0], self.params[0]

        if self.shape in ('R', 'O') and self.params:
            w = self.params[0]
            h = self.params[1] if len(self.params) > 1 else w
            return w, h

        if self.shape.lower() == 'roundrect' and len(self.params) >= 9:
            # radius, then four corner points, then rotation
            xs, ys = self.params[1:9:2], self.params[2:9:2]
            return max(xs) - min(xs), max(ys) - min(ys)

        return None


@dataclass
class Flash:
    x: float
    y: float
    aperture: Aperture = None


class GerberParser:
    """ Statement-level Gerber reader. After :py:meth:`parse`, the results are available as attributes:

    * :py:attr:`coordinates`: ``(x, y)`` tuples of every operation's explicitly given coordinates in millimeters. An
      axis that was not given in the statement is :py:obj:`None`.
    * :py:attr:`flashes`: list of :py:class:`Flash`
    * :py:attr:`regions`: list of region contours, each a list of ``(x, y)`` points in millimeters.
    * :py:attr:`apertures`: :py:obj:`dict` mapping aperture numbers to :py:class:`Aperture`
    """

    NUMBER = r"[\+-]?[0-9.]+"
    NAME = r"[a-zA-Z_$\.][a-zA-Z_$\.0-9+\-]+"

    STATEMENT_REGEXES = {
        'coord': fr"(?P<interp>G0?[123]|G74|G75)?\s*(?:X(?P<x>{NUMBER}))?(?:Y(?P<y>{NUMBER}))?" \
            fr"(?:I(?P<i>{NUMBER}))?(?:J(?P<j>{NUMBER}))?\s*(?:D0?(?P<op>[123]))?$",
        'region_start': r'G36$',
        'region_end': r'G37$',
        'eof': r"(D02)?M0?[02]$",
        'aperture': r"(G54|G55)?\s*D(?P<number>\d+)$",
        'unit_mode': r"MO(?P<unit>(MM|IN))$",
        'format_spec': r"FS(?P<zero>(L|T|D))?(?P<notation>(A|I))[NG0-9]*X(?P<x>[0-7][0-7])Y(?P<y>[0-7][0-7])[DM0-9]*$",
        'aperture_definition': fr"ADD(?P<number>\d+)(?P<shape>C|R|O|P|{NAME})(,(?P<modifiers>[^,%]*))?$",
        'aperture_macro': fr"AM(?P<name>{NAME})\*(?P<macro>[^%]*)",
        'old_unit': r'(?P<mode>G7[01])$',
        'old_notation': r'(?P<mode>G9[01])$',
        # polarity, image and attribute statements do not change geometry we care about
        'ignored': r"(LP|LM|LR|LS|LN|IN|IP|IR|AS|MI|OF|SF|SR|TF|TA|TO|TD|ICAS|M01)",
        'comment': r"G0?4(?P<comment>[^*]*)",
        }

    def __init__(self, override_settings=None):
        self.file_settings = override_settings or FileSettings()
        self.apertures = {}
        self.macros = set()
        self.current_aperture = None
        self.last_operation = None
        self.x, self.y = 0.0, 0.0
        self.in_region = False
        self.contour = []
        self.regions = []
        self.flashes = []
        self.coordinates = []
        self.eof_found = False
        self.filename = None
        self.line = None
        self.lineno = 0

    def warn(self, msg, kls=SyntaxWarning):
        warnings.warn(f'{self.filename}:{self.lineno} "{self.line}": {msg}', kls)

    def _split_commands(self, data):
        # Ignore '%' signs within G04 commments because some tools put unbalanced % signs into comments.
        self.lineno = 1
        for match in re.finditer(r'G04.*?\*\s*|%.*?%\s*|[^*%]*\*\s*', data, re.DOTALL):
            cmd = match[0]
            newlines = cmd.count('\n')
            cmd = cmd.strip()

            if cmd.startswith('%') and not cmd.startswith('%AM'):
                # extended commands may contain several statements, e.g. "%FSLAX25Y25*MOIN*%"
                parts = cmd.strip('%').split('*')
            else:
                parts = [cmd.strip('%').rstrip('*')]

            for part in parts:
                if (part := part.strip()):
                    self.line = part
                    yield part
            self.lineno += newlines
        self.lineno = 0
        self.line = ''

    def parse(self, data, filename=None):
        # filename arg is for error messages
        self.filename = filename or '<unknown>'

        regex_cache = [ (re.compile(exp), getattr(self, f'_parse_{name}')) for name, exp in self.STATEMENT_REGEXES.items() ]

        for line in self._split_commands(data):
            for le_regex, fun in regex_cache:
                if (match := le_regex.match(line)):
                    try:
                        fun(match)
                    except (ValueError, IndexError) as e:
                        raise InvalidGerberFormatError(f'line {self.lineno} "{line}": {e}', self.filename) from e
                    break

            else:
                self.warn(f'Unknown statement found: "{line}", ignoring.', UnknownStatementWarning)

        self._close_contour()
        return self

    def _close_contour(self):
        if len(self.contour) > 1:
            self.regions.append(self.contour)
        self.contour = []

    def _parse_coord(self, match):
        x, y, op = match['x'], match['y'], match['op']

        if not (x or y or op):
            return # interpolation mode only, e.g. "G01"

        settings = self.file_settings
        new_x = settings.parse_length(x) if x else None
        new_y = settings.parse_length(y) if y else None

        if settings.notation == 'incremental':
            new_x = None if new_x is None else self.x + new_x
            new_y = None if new_y is None else self.y + new_y

        if op is None:
            if self.last_operation is None:
                self.warn('Coordinate statement without operation code and no previous operation, assuming D01.')
                op = '1'
            else:
                op = self.last_operation
        self.last_operation = op

        if new_x is not None or new_y is not None:
            self.coordinates.append((new_x, new_y))

        start = (self.x, self.y)
        self.x = self.x if new_x is None else new_x
        self.y = self.y if new_y is None else new_y

        if op == '1':
            if self.in_region:
                if not self.contour:
                    self.contour.append(start)
                self.contour.append((self.x, self.y))

        elif op == '2':
            if self.in_region:
                self._close_contour()
                self.contour.append((self.x, self.y))

        else:
            if self.in_region:
                self.warn('Flash inside region, ignoring.')
            else:
                self.flashes.append(Flash(self.x, self.y, self.current_aperture))

    def _parse_region_start(self, _match):
        self.in_region = True
        self.contour = []

    def _parse_region_end(self, _match):
        self._close_contour()
        self.in_region = False

    def _parse_eof(self, _match):
        self.eof_found = True

    def _parse_aperture(self, match):
        number = int(match['number'])
        if number < 10:
            raise ValueError(f'Invalid aperture number D{number:02d}')

        if number not in self.apertures:
            self.warn(f'Tried to select undefined aperture D{number}')
        self.current_aperture = self.apertures.get(number)

    def _parse_unit_mode(self, match):
        self.file_settings.unit = MM if match['unit'] == 'MM' else Inch

    def _parse_old_unit(self, match):
        self.file_settings.unit = Inch if match['mode'] == 'G70' else MM
        self.warn(f'Deprecated {match["mode"]} unit mode statement found.', DeprecationWarning)

    def _parse_old_notation(self, match):
        self.file_settings.notation = 'absolute' if match['mode'] == 'G90' else 'incremental'

    def _parse_format_spec(self, match):
        self.file_settings.zeros = {'L': 'leading', 'T': 'trailing'}.get(match['zero'])
        self.file_settings.notation = 'absolute' if match['notation'] == 'A' else 'incremental'

        if match['x'] != match['y']:
            raise ValueError('FS specifies different coordinate formats for X and Y')

        self.file_settings.number_format = int(match['x'][0]), int(match['x'][1])

    def _parse_aperture_definition(self, match):
        number, shape = int(match['number']), match['shape']
        modifiers = [ float(e) for e in match['modifiers'].split('X') if e.strip() ] if match['modifiers'] else []

        if shape in ('C', 'R', 'O'):
            params = [ MM(value, self.file_settings.unit) for value in modifiers ]
        elif shape == 'P':
            # diameter, vertex count, rotation
            params = [ MM(modifiers[0], self.file_settings.unit), *modifiers[1:] ]
        else:
            if shape not in self.macros:
                self.warn(f'Aperture D{number} uses undefined macro {shape}')
            params = [ MM(value, self.file_settings.unit) for value in modifiers ]

        self.apertures[number] = Aperture(number, shape, params)

    def _parse_aperture_macro(self, match):
        self.macros.add(match['name'])

    def _parse_ignored(self, match):
        pass

    def _parse_comment(self, match):
        pass


def parse_gerber(data, filename=None):
    """ Parse Gerber file contents and return the populated :py:class:`GerberParser`. """
    return GerberParser().parse(data, filename=filename)
