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
transjlc
========

transjlc converts the Gerber and Excellon fabrication files exported by common EDA tools into the file names and
conventions used by JLC's PCB order system. It renames layers, adds the generator header and fingerprint aperture the
order system expects to Gerber files, and can generate encrypted colorful silkscreen files from images.
"""

__version__ = '0.4.0'

from .layers import Layer, LayerKind, Dialect, auto_detect, get_dialect
from .transform import GerberTransformer
from .converter import Converter, ConversionResult
from .colorful import ColorfulOptions, ColorfulSilkscreenGenerator
from .utils import MM, Inch
