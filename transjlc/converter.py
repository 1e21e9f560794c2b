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
transjlc.converter
==================
**Batch conversion of a directory of fabrication files**

Conversion happens in two steps. :py:meth:`Converter.plan` lists the input directory, picks the naming dialect and
classifies every file without writing anything. :py:meth:`Converter.execute` then writes the renamed and rewritten
files, the ordering notes and optionally the colorful silkscreen files to the output directory.
"""

import dataclasses
import tempfile
import warnings
from dataclasses import dataclass, field
from pathlib import Path

from .archive import create_zip
from .assets import load_asset, ORDERING_NOTES
from .colorful import ColorfulSilkscreenGenerator
from .layers import Layer, LayerKind, get_dialect
from .transform import GerberTransformer, has_missing_aperture_prefix
from .utils import ConversionError, ConversionIOError, DuplicateLayerWarning, InvalidGerberFormatError
from .utils import read_file, read_text_file, write_file, write_text_file


@dataclass
class ConversionPlan:
    """ Input files of one conversion run and their classification. """
    input_dir: Path
    dialect: object
    layers: dict = field(default_factory=dict)

    @property
    def matched(self):
        """ ``(path, Layer)`` pairs of all files that will be written, in input order. """
        return [ (path, layer) for path, layer in self.layers.items()
                if layer is not None and layer.kind != LayerKind.OTHER ]

    @property
    def skipped(self):
        return [ path for path, layer in self.layers.items() if layer is None or layer.kind == LayerKind.OTHER ]

    def format_layer_map(self):
        lines = [f'Detected EDA dialect: {self.dialect.name}']
        for path, layer in self.layers.items():
            target = '(skipped)' if layer is None or layer.filename is None else layer.filename
            lines.append(f'    {path.name} -> {target}')
        return '\n'.join(lines)


@dataclass
class ConversionResult:
    """ Files written by one conversion run. """
    dialect: str
    #: :py:obj:`dict` mapping each :py:class:`~.layers.Layer` to the path of its output file.
    outputs: dict = field(default_factory=dict)
    skipped: list = field(default_factory=list)
    #: Whether bare aperture selects were prefixed with G54 in this batch.
    prefixed: bool = False

    @property
    def converted(self):
        return [ layer for layer in self.outputs if layer.kind != LayerKind.OTHER ]

    def summary(self):
        return (f'Converted {len(self.converted)} layer(s) using the {self.dialect} naming rules, '
                f'skipped {len(self.skipped)} file(s).')


class Converter:
    """ Converts a directory of Gerber and Excellon files into the manufacturer's layout.

    :param dialect: Dialect selector, see :py:func:`~.layers.get_dialect`.
    :param transformer: :py:class:`~.transform.GerberTransformer` used for all non-drill layers.
    :param overrides: Extra file name rules, see :py:meth:`~.layers.Dialect.extended`.
    :param colorful: :py:class:`~.colorful.ColorfulOptions`. Colorful silkscreen files are only generated if an
                     image is given.
    :param encryptor: :py:class:`~.crypto.HybridEncryptor` for the colorful silkscreen files.
    """

    def __init__(self, dialect='auto', transformer=None, overrides=None, colorful=None, encryptor=None):
        self.dialect = dialect
        self.transformer = transformer or GerberTransformer()
        self.overrides = overrides
        self.colorful = colorful
        self.encryptor = encryptor

    def discover(self, input_dir):
        """ List the regular files directly inside :py:obj:`input_dir`, sorted by name. """
        input_dir = Path(input_dir)
        try:
            files = sorted(path for path in input_dir.iterdir() if path.is_file())
        except OSError as e:
            raise ConversionIOError(input_dir, 'list') from e

        if not files:
            raise ConversionError(f'No input files found in {input_dir}')
        return files

    def plan(self, input_dir):
        files = self.discover(input_dir)
        dialect = get_dialect(self.dialect, [path.name for path in files], self.overrides)
        return ConversionPlan(Path(input_dir), dialect, dialect.classify(files))

    def execute(self, plan, output_dir, progress=None):
        """ Write all output files for :py:obj:`plan` into :py:obj:`output_dir`.

        :param progress: Optional callable, called with each input file's path after that file has been written.
        :rtype: :py:class:`ConversionResult`
        """
        output_dir = Path(output_dir)
        result = ConversionResult(plan.dialect.name, skipped=plan.skipped)

        # The prefix decision covers the whole batch, so all Gerber files are read before anything is written.
        gerbers = { path: read_text_file(path) for path, layer in plan.matched if not layer.is_drill }
        result.prefixed = any(map(has_missing_aperture_prefix, gerbers.values()))

        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConversionIOError(output_dir, 'create') from e

        for path, layer in plan.matched:
            out = output_dir / layer.filename
            if layer in result.outputs:
                warnings.warn(f'{path.name} overwrites {layer} output {out.name} written from another input file.',
                              DuplicateLayerWarning)

            if layer.is_drill:
                write_file(out, read_file(path))
            else:
                write_text_file(out, self.transformer.transform(gerbers[path], result.prefixed))

            result.outputs[layer] = out
            if progress:
                progress(path)

        notes = output_dir / ORDERING_NOTES
        write_file(notes, load_asset(ORDERING_NOTES))
        result.outputs[Layer(LayerKind.OTHER)] = notes

        if self.colorful is not None and self.colorful.enabled:
            self._generate_colorful(result, output_dir)

        return result

    def _generate_colorful(self, result, output_dir):
        outline = result.outputs.get(Layer(LayerKind.BOARD_OUTLINE))
        if outline is None:
            raise InvalidGerberFormatError('Colorful silkscreen generation needs a board outline layer')

        options = dataclasses.replace(self.colorful,
                top_solder_mask=self.colorful.top_solder_mask or result.outputs.get(Layer(LayerKind.TOP_MASK)),
                bottom_solder_mask=self.colorful.bottom_solder_mask or result.outputs.get(Layer(LayerKind.BOTTOM_MASK)))

        generator = ColorfulSilkscreenGenerator(options, self.encryptor)
        for layer, path in generator.generate(outline, output_dir):
            result.outputs[layer] = path

    def execute_to_zip(self, plan, zip_path, progress=None):
        """ Like :py:meth:`execute`, but pack the output files into a single zip file at :py:obj:`zip_path`. The
        paths in the returned result's ``outputs`` are member names inside that zip file. """
        with tempfile.TemporaryDirectory() as tmpdir:
            result = self.execute(plan, tmpdir, progress=progress)
            create_zip(result.outputs.values(), zip_path)

        result.outputs = { layer: Path(path.name) for layer, path in result.outputs.items() }
        return result

    def convert(self, input_dir, output_dir, progress=None):
        """ Plan and execute the conversion of :py:obj:`input_dir` in one go. """
        return self.execute(self.plan(input_dir), output_dir, progress=progress)
