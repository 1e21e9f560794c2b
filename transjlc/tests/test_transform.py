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

import hashlib
import re

import pytest

from .utils import *
from ..transform import (GerberTransformer, ApertureTable, has_missing_aperture_prefix, add_aperture_prefix,
                         hash_suffix, scan_apertures, renumber_apertures, insert_definition)
from ..utils import FingerprintSkippedWarning


HEADER = 'G04 EasyEDA Pro v2.2.42.2, 2024-01-02 03:04:05*\nG04 Gerber Generator version 0.3*\n'


class FakeRandom:
    def __init__(self, offset=0, value=0.5):
        self.offset, self.value = offset, value

    def randrange(self, stop):
        assert stop == 5
        return self.offset

    def random(self):
        return self.value


def definitions(content):
    return [line for line in content.split('\n') if line.startswith('%ADD')]


def test_header():
    out = fixed_transformer().add_header('%FSLAX46Y46*%\r\n%MOMM*%\r\nM02*\r\n')
    assert out == HEADER + '%FSLAX46Y46*%\n%MOMM*%\nM02*\n'
    assert '\r' not in out

    # classic Mac line endings
    assert fixed_transformer().add_header('G04 a*\rG04 b*\r\nM02*\r') == HEADER + 'G04 a*\nG04 b*\nM02*\n'


def test_header_only():
    out = fixed_transformer(ignore_hash=True).transform(PREFIXED_COPPER)
    assert out == HEADER + PREFIXED_COPPER


def test_missing_prefix_detection():
    assert has_missing_aperture_prefix(KICAD_COPPER)
    assert not has_missing_aperture_prefix(PREFIXED_COPPER)
    # operation codes and definitions are not selects
    assert not has_missing_aperture_prefix('D01*\nD02*\nX10Y10D03*\nX1Y1D10*\n%ADD10C,0.1*%\n')


def test_add_prefix():
    assert add_aperture_prefix('D10*\nX1Y2D02*\nD02*\nG54D11*\n%ADD12C,0.1*%\nD1234*') == \
            'G54D10*\nX1Y2D02*\nD02*\nG54D11*\n%ADD12C,0.1*%\nG54D1234*'

    out = add_aperture_prefix(KICAD_COPPER)
    assert not has_missing_aperture_prefix(out)
    assert 'G54D10*' in out and 'G54D11*' in out
    assert 'X110000000Y-60000000D03*' in out


def test_hash_suffix():
    suffix = hash_suffix(KICAD_COPPER)
    assert suffix == hash_suffix(KICAD_COPPER)
    assert re.fullmatch(r'\d\d', suffix)

    digest = hashlib.md5(('494d' + KICAD_COPPER).encode()).hexdigest()
    assert hash_suffix(KICAD_COPPER, imported_pcb_doc=True) == f'{int(digest[-2:], 16) % 100:02d}'


def test_fingerprint_two_apertures():
    out = fixed_transformer().transform(KICAD_COPPER, prefix_apertures=True)
    assert out.startswith(HEADER)

    # the fingerprint is a copy of the last aperture with a new size, taking its number
    defs = definitions(out)
    assert len(defs) == 3
    assert defs[0] == '%ADD10C,0.250000*%'
    assert re.fullmatch(r'%ADD11R,[01]\.\d{4}X1\.000000\*%', defs[1])
    assert defs[2] == '%ADD12R,1.500000X1.000000*%'

    assert 'G54D10*' in out
    assert 'G54D12*' in out
    assert 'G54D11*' not in out
    assert out.rstrip().endswith('M02*')


def test_fingerprint_size_uses_hash():
    transformer = GerberTransformer(rng=FakeRandom(value=0.5))
    size = transformer.fingerprint_size(PREFIXED_COPPER)
    assert size == '0.50' + hash_suffix(PREFIXED_COPPER)

    transformer = GerberTransformer(rng=FakeRandom(value=0.5), imported_pcb_doc=True)
    assert transformer.fingerprint_size(PREFIXED_COPPER) == '0.50' + hash_suffix(PREFIXED_COPPER, True)


def test_fingerprint_size_never_zero(monkeypatch):
    transformer = GerberTransformer(rng=FakeRandom(value=0.001))
    monkeypatch.setattr('transjlc.transform.hash_suffix', lambda content, imported=False: '00')
    assert transformer.fingerprint_size('') == '0.0100'


def test_fingerprint_is_deterministic_for_same_seed():
    a = fixed_transformer().transform(KICAD_COPPER)
    b = fixed_transformer().transform(KICAD_COPPER)
    assert a == b


def test_ignore_hash():
    out = fixed_transformer(ignore_hash=True).transform(KICAD_COPPER, prefix_apertures=True)
    assert definitions(out) == ['%ADD10C,0.250000*%', '%ADD11R,1.500000X1.000000*%']


def test_size_limit():
    transformer = fixed_transformer(max_hash_file_size=100)
    with pytest.warns(FingerprintSkippedWarning):
        out = transformer.transform(KICAD_COPPER)
    assert out == HEADER + KICAD_COPPER


def test_size_limit_counts_bytes():
    plain = '%FSLAX46Y46*%\n%MOMM*%\nG04 ' + 'u' * 40 + '*\n%ADD10C,0.1*%\nD10*\nM02*\n'
    text = plain.replace('u', '\u00b5')
    assert len(text) == len(plain)

    transformer = fixed_transformer(max_hash_file_size=len(plain))
    assert transformer.add_fingerprint(plain).count('%ADD') == 2

    # same number of characters, but each micro sign takes two bytes in UTF-8
    with pytest.warns(FingerprintSkippedWarning, match='bytes'):
        assert transformer.add_fingerprint(text) == text


def test_fingerprint_without_apertures():
    content = '%FSLAX46Y46*%\n%MOMM*%\n%LPD*%\nG01*\nM02*\n'
    out = GerberTransformer(rng=FakeRandom(value=0.25)).add_fingerprint(content)
    size = '0.25' + hash_suffix(content)
    assert out == f'%FSLAX46Y46*%\n%MOMM*%\n%ADD10C,{size}*%\n%LPD*%\nG01*\nM02*\n'


def test_select_slot():
    table = ApertureTable([f'%ADD{n}C,0.{n}*%' for n in range(10, 17)], list(range(10, 17)))
    assert GerberTransformer(rng=FakeRandom(offset=4)).select_slot(table) == (16, '%ADD16C,0.16*%')
    assert GerberTransformer(rng=FakeRandom(offset=0)).select_slot(table) == (15, '%ADD15C,0.15*%')

    table = ApertureTable(['%ADD10C,0.1*%'], [10])
    assert GerberTransformer(rng=FakeRandom(offset=3)).select_slot(table) == (10, '%ADD10C,0.1*%')

    assert GerberTransformer(rng=FakeRandom()).select_slot(ApertureTable()) == (10, None)


def test_fingerprint_seven_apertures():
    defs = '\n'.join(f'%ADD{n}C,0.{n}*%' for n in range(10, 17))
    content = f'%FSLAX46Y46*%\n%MOMM*%\n{defs}\nG54D16*\nX0Y0D03*\nM02*\n'
    out = GerberTransformer(rng=FakeRandom(offset=4, value=0.75)).add_fingerprint(content)
    size = '0.75' + hash_suffix(content)

    assert definitions(out)[-2:] == [f'%ADD16C,{size}*%', '%ADD17C,0.16*%']
    assert 'G54D17*' in out
    assert 'G54D16*' not in out


def test_scan_apertures():
    content = '%FSLAX46Y46*%\n%MOMM*%\n%ADD10C,0.1*%\n%ADD11C,0.2*%\nG04 comment*\n%ADD12C,0.3*%\n'
    table = scan_apertures(content)
    assert table.numbers == [10, 11]
    assert len(table) == 2

    assert scan_apertures('%MOMM*%\nM02*\n').numbers == []


def test_scan_apertures_far_down():
    # past the first lines only definition and macro lines keep the scan going
    content = 'G04 filler*\n' * 250 + '%ADD10C,0.1*%\n'
    assert scan_apertures(content).numbers == []

    content = 'G04 filler*\n' * 150 + '%ADD10C,0.1*%\n' * 100 + '%ADD99C,0.1*%\nG01*\n'
    table = scan_apertures(content)
    assert table.numbers == [10] * 100 + [99]


def test_renumber():
    content = '%ADD10C,0.1*%\n%ADD11C,0.2*%\n%ADD9999C,0.3*%\nD10*\nG54D11*\nD9999*\nG54D9999*\nX1Y1D02*\n'
    assert renumber_apertures(content, 11) == \
            '%ADD10C,0.1*%\n%ADD12C,0.2*%\n%ADD9999C,0.3*%\nD10*\nG54D12*\nD9999*\nG54D9999*\nX1Y1D02*\n'


def test_insert_definition():
    content = '%MOMM*%\n%ADD10C,0.1*%\n%ADD12C,0.2*%\nG01*\n'
    assert insert_definition(content, '%ADD11C,0.5*%', 11) == \
            '%MOMM*%\n%ADD10C,0.1*%\n%ADD11C,0.5*%\n%ADD12C,0.2*%\nG01*\n'

    # %ADD120 is not %ADD12
    content = '%MOMM*%\n%ADD120C,0.1*%\n%LPD*%\n'
    assert insert_definition(content, '%ADD11C,0.5*%', 11) == '%MOMM*%\n%ADD120C,0.1*%\n%ADD11C,0.5*%\n%LPD*%\n'

    assert insert_definition('M02*', '%ADD10C,0.5*%', 10) == 'M02*\n%ADD10C,0.5*%'
