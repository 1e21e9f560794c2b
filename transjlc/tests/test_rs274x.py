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

import pytest

from .utils import *
from ..cam import FileSettings
from ..rs274x import Aperture, GerberParser, parse_gerber
from ..utils import MM, Inch, UnknownStatementWarning, InvalidGerberFormatError


@pytest.mark.parametrize('zeros,number_format,value,expected', [
    ('leading', (2, 5), '100000', 1.0),
    ('leading', (2, 5), '-5', -0.00005),
    ('leading', (4, 6), '+123456789', 123.456789),
    ('trailing', (2, 5), '15', 15.0),
    ('trailing', (2, 5), '123', 12.3),
    (None, (3, 3), '001500', 1.5),
    ('leading', (2, 5), '1.25', 1.25),
    ('leading', (2, 0), '42', 42.0),
    ])
def test_parse_gerber_value(zeros, number_format, value, expected):
    settings = FileSettings(zeros=zeros, number_format=number_format)
    assert settings.parse_gerber_value(value) == pytest.approx(expected)


def test_file_settings_validation():
    settings = FileSettings()
    assert settings.unit == MM
    assert settings.parse_gerber_value('') is None

    with pytest.raises(ValueError):
        settings.unit = 'furlong'
    with pytest.raises(ValueError):
        settings.zeros = 'both'
    with pytest.raises(ValueError):
        settings.number_format = (7, 8)

    settings.unit = Inch
    assert settings.unit == Inch
    assert settings.parse_length('100000') == pytest.approx(25.4)


def test_coordinates():
    parser = parse_gerber(OUTLINE, 'outline.gbr')
    assert parser.eof_found
    assert parser.file_settings.number_format == (4, 6)
    assert parser.coordinates[0] == pytest.approx((100.0, -80.0))
    assert len(parser.coordinates) == 5
    assert max(x for x, _y in parser.coordinates) == pytest.approx(150.0)


def test_inch_and_missing_axes():
    data = '%FSLAX24Y24*%\n%MOIN*%\n%ADD10C,0.01*%\nD10*\nX10000Y-5000D02*\nX20000D01*\nY0D01*\nM02*\n'
    parser = parse_gerber(data)
    assert parser.coordinates[0] == pytest.approx((25.4, -12.7))
    assert parser.coordinates[1][1] is None
    assert parser.coordinates[2][0] is None
    assert (parser.x, parser.y) == pytest.approx((50.8, 0))
    assert parser.apertures[10].params == [pytest.approx(0.254)]


def test_multiple_statements_per_block():
    parser = parse_gerber('%FSLAX25Y25*MOIN*%\nX100000Y100000D03*\nM02*\n')
    assert parser.file_settings.unit == Inch
    assert parser.coordinates == [pytest.approx((25.4, 25.4))]


def test_incremental():
    parser = parse_gerber('%FSLIX24Y24*%\n%MOMM*%\nX10000Y10000D02*\nX10000D01*\nM02*\n')
    assert parser.coordinates[1][0] == pytest.approx(2.0)
    assert parser.coordinates[1][1] is None
    assert (parser.x, parser.y) == pytest.approx((2.0, 1.0))


def test_unknown_statement():
    with pytest.warns(UnknownStatementWarning):
        parse_gerber('%FSLAX46Y46*%\n%MOMM*%\nFROBNICATE*\nM02*\n')


def test_invalid_statement():
    with pytest.raises(InvalidGerberFormatError) as excinfo:
        parse_gerber('%FSLAX46Y36*%\nM02*\n', 'broken.gbr')
    assert excinfo.value.path == 'broken.gbr'
    assert 'broken.gbr' in str(excinfo.value)


def test_flashes_and_apertures():
    parser = parse_gerber(SOLDER_MASK)
    assert [(f.x, f.y) for f in parser.flashes] == [pytest.approx((110, -60)), pytest.approx((120, -60))]
    assert parser.flashes[0].aperture.bounding_size() == pytest.approx((1.0, 1.0))
    assert parser.flashes[1].aperture.bounding_size() == pytest.approx((2.0, 1.0))

    assert len(parser.regions) == 1
    assert parser.regions[0] == [pytest.approx(p) for p in [(130, -70), (140, -70), (140, -65), (130, -70)]]


def test_aperture_sizes():
    assert Aperture(10, 'C', [0.5]).bounding_size() == (0.5, 0.5)
    assert Aperture(10, 'P', [0.8, 6, 0]).bounding_size() == (0.8, 0.8)
    assert Aperture(10, 'O', [1.2]).bounding_size() == (1.2, 1.2)
    assert Aperture(10, 'C').bounding_size() is None
    assert Aperture(10, 'CustomMacro', [1, 2, 3]).bounding_size() is None

    roundrect = Aperture(10, 'RoundRect', [0.1, -0.5, 0.25, 0.5, 0.25, 0.5, -0.25, -0.5, -0.25, 0])
    assert roundrect.bounding_size() == pytest.approx((1.0, 0.5))


def test_roundrect_macro():
    data = '''%FSLAX46Y46*%
%MOMM*%
%AMRoundRect*
0 Rectangle with rounded corners*
21,1,$2,$3,0,0,$1*%
%ADD10RoundRect,0.250000X-1.000000X-0.500000X1.000000X-0.500000X1.000000X0.500000X-1.000000X0.500000X0*%
D10*
X1000000Y1000000D03*
M02*
'''
    parser = GerberParser().parse(data)
    assert parser.flashes[0].aperture.shape == 'RoundRect'
    assert parser.flashes[0].aperture.bounding_size() == pytest.approx((2.0, 1.0))
