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
transjlc.layers
===============
**Layer identification and naming**

Maps the file names produced by different EDA tools onto the fixed set of layers the manufacturer expects, and from
there onto the manufacturer's canonical file names.
"""

import re
import warnings
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType

from .layer_rules import MATCH_RULES, DETECTION_ORDER
from .utils import NoMatchingDialectError, UnsupportedDialectError


class LayerKind(Enum):
    """ Kind of a fabrication layer. The values are the ``"side use"`` layer names also used in rule files. """
    NPTH_DRILL = 'drill nonplated'
    PTH_DRILL = 'drill plated'
    PTH_VIA_DRILL = 'drill via'
    TOP_COPPER = 'top copper'
    BOTTOM_COPPER = 'bottom copper'
    INNER_COPPER = 'inner copper'
    TOP_SILK = 'top silk'
    BOTTOM_SILK = 'bottom silk'
    TOP_MASK = 'top mask'
    BOTTOM_MASK = 'bottom mask'
    TOP_PASTE = 'top paste'
    BOTTOM_PASTE = 'bottom paste'
    BOARD_OUTLINE = 'mechanical outline'
    COLORFUL_TOP_SILK = 'top colorful silk'
    COLORFUL_BOTTOM_SILK = 'bottom colorful silk'
    COLORFUL_OUTLINE = 'colorful outline'
    COLORFUL_OUTLINE_MARK = 'colorful outline mark'
    OTHER = 'other unknown'


DRILL_KINDS = (LayerKind.NPTH_DRILL, LayerKind.PTH_DRILL, LayerKind.PTH_VIA_DRILL)

# Files ending in this are checked against the drill rules first.
DRILL_EXTENSION = '.drl'

# A dialect has to recognize at least this many distinct layer kinds to be picked by auto detection.
MIN_LAYER_KINDS = 3

NAMING_SCHEME = {
    LayerKind.NPTH_DRILL:               'Drill_NPTH_Through.DRL',
    LayerKind.PTH_DRILL:                'Drill_PTH_Through.DRL',
    LayerKind.PTH_VIA_DRILL:            'Drill_PTH_Through_Via.DRL',
    LayerKind.TOP_COPPER:               'Gerber_TopLayer.GTL',
    LayerKind.BOTTOM_COPPER:            'Gerber_BottomLayer.GBL',
    LayerKind.INNER_COPPER:             'Gerber_InnerLayer{layer_number}.G{layer_number}',
    LayerKind.TOP_SILK:                 'Gerber_TopSilkscreenLayer.GTO',
    LayerKind.BOTTOM_SILK:              'Gerber_BottomSilkscreenLayer.GBO',
    LayerKind.TOP_MASK:                 'Gerber_TopSolderMaskLayer.GTS',
    LayerKind.BOTTOM_MASK:              'Gerber_BottomSolderMaskLayer.GBS',
    LayerKind.TOP_PASTE:                'Gerber_TopPasteMaskLayer.GTP',
    LayerKind.BOTTOM_PASTE:             'Gerber_BottomPasteMaskLayer.GBP',
    LayerKind.BOARD_OUTLINE:            'Gerber_BoardOutlineLayer.GKO',
    LayerKind.COLORFUL_TOP_SILK:        'Fabrication_ColorfulTopSilkscreen.FCTS',
    LayerKind.COLORFUL_BOTTOM_SILK:     'Fabrication_ColorfulBottomSilkscreen.FCBS',
    LayerKind.COLORFUL_OUTLINE:         'Fabrication_ColorfulBoardOutlineLayer.FCBO',
    LayerKind.COLORFUL_OUTLINE_MARK:    'Fabrication_ColorfulBoardOutlineMark.FCBM',
}


@dataclass(frozen=True)
class Layer:
    """ One output layer. Inner copper layers carry their 1-based layer number, all other layers have
    :py:obj:`None` as their number. """
    kind: LayerKind
    number: int = None

    def __post_init__(self):
        if self.kind == LayerKind.INNER_COPPER:
            if self.number is None or self.number < 1:
                raise ValueError(f'Inner copper layers need a layer number of at least 1, not {self.number!r}')
        elif self.number is not None:
            raise ValueError(f'Only inner copper layers have a layer number, but {self.kind.value} got {self.number}')

    @property
    def filename(self):
        """ Canonical output file name, or :py:obj:`None` for :py:obj:`LayerKind.OTHER`. """
        if (template := NAMING_SCHEME.get(self.kind)) is None:
            return None
        return template.format(layer_number=self.number)

    @property
    def is_drill(self):
        return self.kind in DRILL_KINDS

    def __str__(self):
        if self.kind == LayerKind.INNER_COPPER:
            return f'inner_{self.number} copper'
        return self.kind.value


def _layer_number(match, name):
    for group in match.groups():
        try:
            return int(group)
        except (TypeError, ValueError):
            continue

    if (digits := re.search(r'\d+', name)):
        return int(digits[0])
    return None


class Dialect:
    """ File naming convention of one EDA tool, given as an immutable table mapping each :py:class:`LayerKind` to a
    list of regexes. Regexes are applied to bare file names using :py:func:`re.search`.

    :param name: Name of this dialect, e.g. ``'kicad'``.
    :param rules: :py:obj:`dict` mapping :py:class:`LayerKind` members or their ``"side use"`` names to lists of regex
                  strings.
    :param ignore: Regexes of file names that are never classified.
    """

    def __init__(self, name, rules=None, ignore=()):
        self.name = name
        compiled = {}
        for kind, regexes in (rules or {}).items():
            kind = LayerKind(kind)
            compiled[kind] = compiled.get(kind, ()) + tuple(re.compile(regex) for regex in regexes)
        self.rules = MappingProxyType(compiled)
        self.ignore = tuple(re.compile(regex) if isinstance(regex, str) else regex for regex in ignore)

    def __repr__(self):
        return f'<Dialect {self.name} with {sum(map(len, self.rules.values()))} rules>'

    def extended(self, overrides):
        """ Return a new dialect with the rules from :py:obj:`overrides` taking precedence over this dialect's own
        rules.

        :param overrides: :py:obj:`dict` mapping regexes to layer names such as ``"top copper"``. The special layer
                          name ``"ignore"`` excludes matching files from conversion.
        """
        ignore = list(self.ignore)
        extra = {}
        for regex, layer in overrides.items():
            if layer == 'ignore':
                ignore.append(regex)
            else:
                extra.setdefault(LayerKind(layer), []).append(regex)

        rules = {kind: list(regexes) for kind, regexes in extra.items()}
        for kind, regexes in self.rules.items():
            rules.setdefault(kind, []).extend(regex.pattern for regex in regexes)
        return Dialect(self.name, rules, ignore)

    def match_filename(self, name):
        """ Classify a single file name.

        :param name: File name. Only its last path component is considered.
        :returns: :py:class:`Layer` or :py:obj:`None` if no rule matched.
        """
        name = Path(name).name

        if any(regex.search(name) for regex in self.ignore):
            return None

        if name.lower().endswith(DRILL_EXTENSION):
            for kind in DRILL_KINDS:
                if any(regex.search(name) for regex in self.rules.get(kind, ())):
                    return Layer(kind)

        for kind, regexes in self.rules.items():
            if kind in DRILL_KINDS:
                continue

            for regex in regexes:
                if not (match := regex.search(name)):
                    continue

                if kind == LayerKind.INNER_COPPER:
                    number = _layer_number(match, name)
                    if not number:
                        return None
                    return Layer(kind, number)

                return Layer(kind)

        return None

    def classify(self, paths):
        """ Classify a list of files.

        :returns: :py:obj:`dict` mapping each path to its :py:class:`Layer`, or to :py:obj:`None` if the file is not
                  recognized.
        """
        return {path: self.match_filename(path) for path in paths}

    def matched_kinds(self, names):
        """ Return the set of distinct layer kinds found among :py:obj:`names`. All inner layers count as one kind. """
        return {layer.kind for layer in map(self.match_filename, names) if layer is not None}

    def can_handle(self, names):
        return len(self.matched_kinds(names)) >= MIN_LAYER_KINDS


BUILTIN_DIALECTS = {name: Dialect(name, rules) for name, rules in MATCH_RULES.items()}


def auto_detect(names):
    """ Pick the first built-in dialect that recognizes enough of the given file names.

    :raises NoMatchingDialectError: if no built-in dialect recognizes at least :py:obj:`MIN_LAYER_KINDS` layer kinds.
    """
    names = [Path(name).name for name in names]
    for dialect_name in DETECTION_ORDER:
        if (dialect := BUILTIN_DIALECTS[dialect_name]).can_handle(names):
            return dialect

    raise NoMatchingDialectError(names)


def get_dialect(selector, names=None, overrides=None):
    """ Resolve a dialect selector string.

    :param selector: ``'auto'``, one of the built-in dialect names, or ``'custom:<name>'`` for a dialect that only
                     uses the rules given in :py:obj:`overrides`.
    :param names: File names to use for auto detection. Required for ``'auto'``.
    :param overrides: Optional extra rules, see :py:meth:`Dialect.extended`.
    :rtype: :py:class:`Dialect`
    """
    key = selector.strip()

    if key.lower() == 'auto':
        if names is None:
            raise ValueError('Auto detection needs the list of input file names')
        dialect = auto_detect(names)

    elif key.lower() in BUILTIN_DIALECTS:
        dialect = BUILTIN_DIALECTS[key.lower()]

    elif key.lower().startswith('custom:') and key[len('custom:'):]:
        dialect = Dialect(key[len('custom:'):])
        if not overrides:
            warnings.warn(f'Custom dialect {dialect.name!r} has no rules, no files will be converted.')

    else:
        raise UnsupportedDialectError(selector)

    if overrides:
        dialect = dialect.extended(overrides)
    return dialect
