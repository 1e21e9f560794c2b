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
transjlc.svg
============
**Colorful silkscreen documents**

Builds the SVG documents for the colorful silkscreen overlay and the small Gerber file carrying the board outline and
fiducial marks. SVG documents are built with :py:class:`~.utils.Tag` and use 10 mil units. The silkscreen documents
invert the Y axis, the outline document does not.
"""

import base64
import io
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .geometry import mm_to_mil10, compute_mark_points, rectangle_path
from .layers import Layer, LayerKind
from .utils import Tag, fmt_num, read_file, ConversionError


EDA_VERSION = '1.6(2025-08-27)'
#: The visible image is clipped to the board shrunk by this margin (SVG user units).
CLIP_MARGIN = 0.8374
#: The mask clip path starts out as the board grown by this margin (SVG user units).
EXPAND_MARGIN = 0.5
BACKGROUND_COLOR = '#FFFFFF'
OUTLINE_COLOR = '#00AA00'

MIME_SUBTYPES = {'jpg': 'jpeg', 'tif': 'tiff'}


@dataclass
class SilkscreenImage:
    """ A raster image to be printed onto one side of the board. """
    data: bytes
    width: int
    height: int
    subtype: str

    @classmethod
    def load(cls, path):
        path = Path(path)
        data = read_file(path)
        try:
            with Image.open(io.BytesIO(data)) as img:
                width, height = img.size
                fmt = (img.format or '').lower()
        except UnidentifiedImageError as e:
            raise ConversionError(f'{path} is not a supported image file') from e

        ext = path.suffix.lower().lstrip('.') or fmt or 'png'
        return cls(data, width, height, MIME_SUBTYPES.get(ext, ext))

    @property
    def data_uri(self):
        return f'data:image/{self.subtype};base64,{base64.b64encode(self.data).decode()}'


def _view_box(bounds):
    """ ``(min_x, min_y, width, height)`` of the board in SVG coordinates. """
    return (mm_to_mil10(bounds.min_x), -mm_to_mil10(bounds.max_y),
            mm_to_mil10(bounds.width), mm_to_mil10(bounds.height))


def _svg_root(bounds, children):
    box = ' '.join(map(fmt_num, _view_box(bounds)))
    # board coordinates, not flipped like the viewBox
    marks = ' '.join(fmt_num(mm_to_mil10(v)) for point in compute_mark_points(bounds) for v in point)

    return Tag('svg', children, root=True,
            width=f'{fmt_num(bounds.width)}mm', height=f'{fmt_num(bounds.height)}mm',
            boardBox=box, viewBox=box,
            version='1.1',
            eda_version=EDA_VERSION,
            mark_points=marks,
            xmlns='http://www.w3.org/2000/svg',
            xmlns__inkscape='http://www.inkscape.org/namespaces/inkscape',
            xmlns__sodipodi='http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd',
            xmlns__xlink='http://www.w3.org/1999/xlink',
            xmlns__svg='http://www.w3.org/2000/svg')


def _inset_rect(bounds, margin):
    min_x, min_y, w, h = _view_box(bounds)
    return rectangle_path(min_x + margin, min_y + margin, min_x + w - margin, min_y + h - margin)


def _build_silkscreen_svg(bounds, image, mask_paths, mirror):
    min_x, min_y, w, h = _view_box(bounds)
    expanded = _inset_rect(bounds, -EXPAND_MARGIN)

    defs = Tag('defs', [
        Tag('clipPath', [
            Tag('path', id='outline0', d=_inset_rect(bounds, CLIP_MARGIN), style='fill-rule:nonzero')],
            id='clipPath0'),
        Tag('clipPath', [
            Tag('path', id='solder1', d=expanded + ' '.join(mask_paths), style='fill-rule:evenodd;clip-rule:evenodd')],
            id='clipPath1', clip_path='url(#clipPath0)'),
        ])

    sx, sy = fmt_num(w / image.width, 6), fmt_num(h / image.height, 6)
    if mirror:
        group_transform = f'scale(-1 1) translate({fmt_num(-2 * mm_to_mil10(bounds.center_x))} 0)'
        image_transform = f'matrix(-{sx} 0 0 {sy} {fmt_num(min_x + w)} {fmt_num(min_y)})'
    else:
        group_transform = 'scale(1 1) translate(0 0)'
        image_transform = f'matrix({sx} 0 0 {sy} {fmt_num(min_x)} {fmt_num(min_y)})'

    group = Tag('g', [
        Tag('path', d=expanded, fill=BACKGROUND_COLOR),
        Tag('image', width=str(image.width), height=str(image.height), preserveAspectRatio='none',
            transform=image_transform, xlink__href=image.data_uri),
        ], clip_path='url(#clipPath1)', transform=group_transform)

    return _svg_root(bounds, [defs, group])


def build_top_svg(bounds, image, mask_paths):
    """ Colorful silkscreen SVG for the top side.

    :param bounds: :py:class:`~.geometry.BoardBounds` of the board outline
    :param image: :py:class:`SilkscreenImage` stretched over the whole board
    :param mask_paths: SVG paths of the solder mask openings, see :py:func:`~.geometry.parse_solder_mask`
    :rtype: :py:class:`~.utils.Tag`
    """
    return _build_silkscreen_svg(bounds, image, mask_paths, mirror=False)


def build_bottom_svg(bounds, image, mask_paths):
    """ Like :py:func:`build_top_svg`, but mirrored horizontally around the board center since the bottom side is
    seen from below. """
    return _build_silkscreen_svg(bounds, image, mask_paths, mirror=True)


def build_board_outline_svg(bounds):
    """ Plain SVG with the board's bounding rectangle. Unlike the silkscreen documents its Y axis is not inverted, the
    rectangle starts at the board origin. """
    ox, oy = (fmt_num(mm_to_mil10(v)) for v in bounds.origin)
    w, h = fmt_num(mm_to_mil10(bounds.width)), fmt_num(mm_to_mil10(bounds.height))
    rect = Tag('rect', x=ox, y=oy, width=w, height=h, fill='none', stroke=OUTLINE_COLOR, stroke_width='1')
    return Tag('svg', [rect], root=True,
            width=f'{fmt_num(bounds.width)}mm', height=f'{fmt_num(bounds.height)}mm',
            viewBox=f'{ox} {oy} {w} {h}',
            version='1.1',
            xmlns='http://www.w3.org/2000/svg',
            xmlns__svg='http://www.w3.org/2000/svg')


def _gerber_coord(value):
    return f'{round(value * 1e5):+08d}'


def build_outline_mark_gerber(bounds, marks=None):
    """ Plain Gerber file with the board's bounding rectangle and a 1 mm flash at each fiducial mark. """
    marks = compute_mark_points(bounds) if marks is None else marks
    stem = Layer(LayerKind.COLORFUL_OUTLINE_MARK).filename.partition('.')[0]

    def point(x, y, op):
        return f'X{_gerber_coord(x)}Y{_gerber_coord(y)}{op}*'

    corners = [(bounds.min_x, bounds.min_y), (bounds.max_x, bounds.min_y), (bounds.max_x, bounds.max_y),
               (bounds.min_x, bounds.max_y), (bounds.min_x, bounds.min_y)]

    lines = [
        f'G04 {stem}*',
        '%FSLAX25Y25*%',
        '%MOMM*%',
        '%LPD*%',
        '%ADD10C,0.150*%',
        'D10*',
        point(*corners[0], 'D02'),
        *(point(x, y, 'D01') for x, y in corners[1:]),
        '%ADD11C,1.000*%',
        'D11*',
        *(point(x, y, 'D03') for x, y in marks),
        'M02*',
        ]
    return '\n'.join(lines) + '\n'
