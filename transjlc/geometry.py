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
transjlc.geometry
=================
**Board outline and solder mask geometry**

All lengths here are millimeters unless noted otherwise. SVG output uses units of 10 mil (0.254 mm) with the Y axis
pointing down, so Gerber Y coordinates are negated on the way into SVG path data.
"""

import math
from dataclasses import dataclass

from .rs274x import parse_gerber
from .utils import sum_bounds, fmt_num, InvalidGerberFormatError


MM_PER_10_MIL = 0.254
#: Inset of the fiducial marks from the board's bounding box corners.
MARK_INSET = 0.0762


def mm_to_mil10(value):
    """ Convert millimeters to the 10 mil units used in SVG output. """
    return value / MM_PER_10_MIL


@dataclass(frozen=True)
class BoardBounds:
    """ Axis-aligned bounding box of the board outline in millimeters. """
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self):
        return self.max_x - self.min_x

    @property
    def height(self):
        return self.max_y - self.min_y

    @property
    def origin(self):
        return self.min_x, self.min_y

    @property
    def center_x(self):
        return (self.min_x + self.max_x) / 2


def parse_outline_bounds(content, filename=None):
    """ Compute the bounding box of all coordinates given in a board outline Gerber file.

    :raises InvalidGerberFormatError: if the file contains no coordinates.
    """
    parser = parse_gerber(content, filename=filename)

    # sum_bounds skips None, so coordinates that only give one axis still count for that axis
    (min_x, min_y), (max_x, max_y) = sum_bounds((((x, y), (x, y)) for x, y in parser.coordinates),
                                                default=((None, None), (None, None)))
    if None in (min_x, min_y, max_x, max_y):
        raise InvalidGerberFormatError('board outline contains no coordinates', filename)

    if not all(map(math.isfinite, (min_x, min_y, max_x, max_y))):
        raise InvalidGerberFormatError('board outline coordinates are not finite', filename)

    return BoardBounds(min_x, min_y, max_x, max_y)


def compute_mark_points(bounds):
    """ Positions of the three fiducial marks: bottom left, top left and top right corner, each moved slightly
    inwards. """
    min_x, min_y = bounds.min_x + MARK_INSET, bounds.min_y + MARK_INSET
    max_x, max_y = bounds.max_x - MARK_INSET, bounds.max_y - MARK_INSET
    return [(min_x, min_y), (min_x, max_y), (max_x, max_y)]


def _svg_point(x, y):
    return f'{fmt_num(mm_to_mil10(x))} {fmt_num(-mm_to_mil10(y))}'


def rectangle_path(x0, y0, x1, y1):
    """ Closed SVG path around the rectangle with corners ``(x0, y0)`` and ``(x1, y1)``, given in 10 mil units. """
    x0, y0, x1, y1 = map(fmt_num, (x0, y0, x1, y1))
    return f'M {x0} {y0} L {x1} {y0} {x1} {y1} {x0} {y1} {x0} {y0} '


def parse_solder_mask(content, filename=None):
    """ Extract mask openings from a solder mask Gerber file as SVG path strings.

    Every flash becomes the rectangle of its aperture's bounding box, and every region becomes a polygon. Flashes
    made before any aperture was selected use the highest numbered aperture of the file.
    """
    parser = parse_gerber(content, filename=filename)
    paths = []

    fallback = parser.apertures[max(parser.apertures)] if parser.apertures else None
    for flash in parser.flashes:
        aperture = flash.aperture or fallback
        if aperture is None or (size := aperture.bounding_size()) is None:
            continue

        w, h = size
        x, y = mm_to_mil10(flash.x), -mm_to_mil10(flash.y)
        dx, dy = mm_to_mil10(w) / 2, mm_to_mil10(h) / 2
        paths.append(rectangle_path(x - dx, y - dy, x + dx, y + dy))

    for contour in parser.regions:
        first, *rest = contour
        paths.append(f'M {_svg_point(*first)} L ' + ' '.join(_svg_point(*point) for point in rest) + ' Z')

    return paths
