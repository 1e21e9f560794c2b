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
transjlc.colorful
=================
**Colorful silkscreen generation**

Turns one image per board side into the encrypted colorful silkscreen files, plus the encrypted outline drawing and
the plain fiducial mark Gerber that go with them.
"""

from dataclasses import dataclass
from pathlib import Path

from .crypto import HybridEncryptor
from .geometry import parse_outline_bounds, parse_solder_mask, compute_mark_points
from .layers import Layer, LayerKind
from .svg import SilkscreenImage, build_top_svg, build_bottom_svg, build_board_outline_svg, build_outline_mark_gerber
from .utils import read_text_file, write_text_file


@dataclass
class ColorfulOptions:
    """ Inputs for colorful silkscreen generation. All fields are paths or :py:obj:`None`. Without a solder mask file,
    the image is not cut out around mask openings. """
    top_image: Path = None
    bottom_image: Path = None
    top_solder_mask: Path = None
    bottom_solder_mask: Path = None

    @property
    def enabled(self):
        return bool(self.top_image or self.bottom_image)


class ColorfulSilkscreenGenerator:
    def __init__(self, options, encryptor=None):
        self.options = options
        self.encryptor = encryptor or HybridEncryptor()

    def _mask_paths(self, path):
        if path is None:
            return []
        return parse_solder_mask(read_text_file(path), filename=str(path))

    def generate(self, outline_path, output_dir):
        """ Write the colorful silkscreen files for the board whose outline Gerber is at :py:obj:`outline_path`.

        :returns: list of ``(Layer, Path)`` tuples of the written files. Empty if no image was given.
        :raises InvalidGerberFormatError: if the board outline does not contain any coordinates.
        """
        if not self.options.enabled:
            return []

        output_dir = Path(output_dir)
        bounds = parse_outline_bounds(read_text_file(outline_path), filename=str(outline_path))
        key_material = self.encryptor.generate_key_material()
        written = []

        def emit(kind, content, encrypt=True):
            layer = Layer(kind)
            path = output_dir / layer.filename
            if encrypt:
                self.encryptor.write(path, str(content), key_material)
            else:
                write_text_file(path, str(content))
            written.append((layer, path))

        sides = [
            (LayerKind.COLORFUL_TOP_SILK, self.options.top_image, self.options.top_solder_mask, build_top_svg),
            (LayerKind.COLORFUL_BOTTOM_SILK, self.options.bottom_image, self.options.bottom_solder_mask,
             build_bottom_svg),
            ]
        for kind, image_path, mask_path, build in sides:
            if image_path is None:
                continue
            image = SilkscreenImage.load(image_path)
            emit(kind, build(bounds, image, self._mask_paths(mask_path)))

        emit(LayerKind.COLORFUL_OUTLINE, build_board_outline_svg(bounds))
        emit(LayerKind.COLORFUL_OUTLINE_MARK, build_outline_mark_gerber(bounds, compute_mark_points(bounds)),
             encrypt=False)
        return written
