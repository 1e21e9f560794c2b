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

import random
from datetime import datetime

import pytest
from PIL import Image
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ..crypto import HybridEncryptor
from ..transform import GerberTransformer


# Copper layer as exported by KiCad: aperture selects without G54 prefix.
KICAD_COPPER = '''%TF.GenerationSoftware,KiCad,Pcbnew,7.0.1*%
%TF.FileFunction,Copper,L1,Top*%
%FSLAX46Y46*%
G04 Gerber Fmt 4.6, Leading zero omitted, Abs format (unit mm)*
%MOMM*%
%LPD*%
G01*
G04 APERTURE LIST*
%ADD10C,0.250000*%
%ADD11R,1.500000X1.000000*%
G04 APERTURE END LIST*
D10*
X100000000Y-50000000D02*
X120000000Y-50000000D01*
D11*
X110000000Y-60000000D03*
M02*
'''

# Same, but every select already carries the G54 prefix.
PREFIXED_COPPER = '''%FSLAX46Y46*%
%MOMM*%
%LPD*%
G01*
%ADD10C,0.250000*%
%ADD11C,0.500000*%
G54D10*
X100000000Y-50000000D02*
X120000000Y-50000000D01*
G54D11*
X110000000Y-60000000D03*
M02*
'''

OUTLINE = '''%FSLAX46Y46*%
%MOMM*%
%LPD*%
G01*
%ADD10C,0.100000*%
D10*
X100000000Y-80000000D02*
X150000000Y-80000000D01*
X150000000Y-40000000D01*
X100000000Y-40000000D01*
X100000000Y-80000000D01*
M02*
'''

SOLDER_MASK = '''%FSLAX46Y46*%
%MOMM*%
%LPD*%
%ADD10C,1.000000*%
%ADD11R,2.000000X1.000000*%
D10*
X110000000Y-60000000D03*
D11*
X120000000Y-60000000D03*
G36*
X130000000Y-70000000D02*
X140000000Y-70000000D01*
X140000000Y-65000000D01*
X130000000Y-70000000D01*
G37*
M02*
'''

DRILL = b'''M48
; DRILL file {KiCad 7.0.1} date 2024-01-02
FMAT,2
METRIC
T1C0.400
%
G90
G05
T1
X110.0Y-60.0
M30
'''

KICAD_BOARD = {
    'board-F_Cu.gbr': KICAD_COPPER,
    'board-B_Cu.gbr': PREFIXED_COPPER,
    'board-F_Mask.gbr': SOLDER_MASK,
    'board-Edge_Cuts.gbr': OUTLINE,
    'board-NPTH.drl': DRILL,
    'board-PTH.drl': DRILL.replace(b'T1C0.400', b'T1C0.800'),
}

PROTEL_BOARD = {
    'board.GTL': KICAD_COPPER,
    'board.GBL': PREFIXED_COPPER,
    'board.GKO': OUTLINE,
    'board.G1': PREFIXED_COPPER,
    'board.DRL': DRILL,
    'board.DRR': 'drill report',
}


def fixed_transformer(**kwargs):
    return GerberTransformer(rng=random.Random(23), clock=lambda: datetime(2024, 1, 2, 3, 4, 5), **kwargs)


@pytest.fixture
def board_dir(tmp_path):
    def make(files, name='input'):
        directory = tmp_path / name
        directory.mkdir()
        for filename, content in files.items():
            data = content if isinstance(content, bytes) else content.encode()
            (directory / filename).write_bytes(data)
        return directory
    return make


@pytest.fixture
def test_image(tmp_path):
    def make(name='art.png', size=(40, 20)):
        path = tmp_path / name
        Image.new('RGB', size, (200, 30, 30)).save(path)
        return path
    return make


@pytest.fixture(scope='session')
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def encryptor(rsa_private_key):
    pem = rsa_private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo)
    return HybridEncryptor(pem)


@pytest.fixture
def print_on_error(request):
    messages = []

    def register_print(*args, sep=' ', end='\n'):
        nonlocal messages
        messages.append(sep.join(str(arg) for arg in args) + end)

    yield register_print

    if request.node.rep_call.failed:
        for msg in messages:
            print(msg, end='')
