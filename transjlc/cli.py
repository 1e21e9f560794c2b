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

import json
import re
import sys
import warnings
from pathlib import Path

import click

from . import __version__
from .archive import open_input
from .colorful import ColorfulOptions
from .converter import Converter
from .layers import BUILTIN_DIALECTS, LayerKind
from .transform import GerberTransformer, MAX_HASH_FILE_SIZE
from .utils import ConversionError


def _showwarning(message, category, filename, lineno, file=None, line=None):
    if file is None:
        file = sys.stderr

    filename = Path(filename)
    module_install_location = Path(__file__).parent.parent
    if filename.is_relative_to(module_install_location):
        filename = filename.relative_to(module_install_location)

    print(f'{filename}:{lineno}: {message}', file=file)
warnings.showwarning = _showwarning

def _print_version(ctx, param, value):
    if value and not ctx.resilient_parsing:
        click.echo(f'Version {__version__}')
        ctx.exit()


class DialectSelector(click.ParamType):
    """ ``auto``, a built-in dialect name, or ``custom:<name>``. """
    name = 'dialect'

    def convert(self, value, param, ctx):
        key = value.strip().lower()
        if key == 'auto' or key in BUILTIN_DIALECTS or (key.startswith('custom:') and len(key) > len('custom:')):
            return value.strip()

        choices = ', '.join(['auto', *BUILTIN_DIALECTS, 'custom:<name>'])
        self.fail(f'{value!r} is not a supported EDA dialect. Use one of {choices}.')


def _load_input_map(path):
    if path is None:
        return None

    try:
        overrides = json.loads(path.read_text())
    except (OSError, ValueError) as e:
        raise click.BadParameter(f'Cannot read layer name map: {e}', param_hint='--input-map') from e

    if not isinstance(overrides, dict) or not all(isinstance(v, str) for v in overrides.values()):
        raise click.BadParameter('Layer name map must be a single JSON dict of string: string entries',
                                 param_hint='--input-map')

    known = {'ignore', *(kind.value for kind in LayerKind)}
    for regex, layer in overrides.items():
        if layer not in known:
            raise click.BadParameter(f'Unknown layer name {layer!r} for rule {regex!r}', param_hint='--input-map')
        try:
            re.compile(regex)
        except re.error as e:
            raise click.BadParameter(f'Invalid regex {regex!r}: {e}', param_hint='--input-map') from e

    return overrides


@click.group()
@click.option('--version', is_flag=True, callback=_print_version, expose_value=False, is_eager=True)
def cli():
    """ The transjlc CLI converts the Gerber and Excellon files exported by KiCad, Protel/Altium and other EDA tools
    into the file names and conventions expected by JLC's order system. """
    pass


@cli.command()
@click.option('--version', is_flag=True, callback=_print_version, expose_value=False, is_eager=True)
@click.option('--warnings', 'format_warnings', type=click.Choice(['default', 'ignore', 'once']), default='default',
              help='''Enable or disable warnings during conversion (default: on)''')
@click.option('-e', '--eda', 'dialect', type=DialectSelector(), default='auto', show_default=True, help='''EDA tool
              that exported the input files: "auto" to detect it from the file names, one of "kicad", "protel" or
              "jlc", or "custom:<name>" to only use the rules given by --input-map.''')
@click.option('-m', '--input-map', type=click.Path(exists=True, dir_okay=False, path_type=Path), help='''Extend the
              layer name rules with a name map from a JSON file. The JSON file must contain a single JSON dict with an
              arbitrary number of string: string entries. The keys are interpreted as regexes searched for in the file
              names, and each value must either be the string "ignore" to skip matching files, or a layer name such as
              "top copper", "inner copper" or "drill nonplated". These rules take precedence over the built-in
              ones.''')
@click.option('-z', '--zip', 'make_zip', is_flag=True, help='Pack the output files into a single zip file.')
@click.option('-n', '--zip-name', default='Gerber', show_default=True, help='''Name of the output zip file, without
              the .zip extension.''')
@click.option('--ignore-hash', is_flag=True, help='Do not add the fingerprint aperture to Gerber files.')
@click.option('--imported-pcb-doc', is_flag=True, help='''Mark the input as coming from an imported PCB document. This
              changes the fingerprint aperture size.''')
@click.option('--max-hash-size', type=click.IntRange(min=0), default=MAX_HASH_FILE_SIZE, show_default=True,
              help='Gerber files larger than this many bytes do not get a fingerprint aperture.')
@click.option('--top-image', type=click.Path(exists=True, dir_okay=False, path_type=Path), help='''Image to print as
              colorful silkscreen on the top side of the board.''')
@click.option('--bottom-image', type=click.Path(exists=True, dir_okay=False, path_type=Path), help='''Image to print as
              colorful silkscreen on the bottom side of the board.''')
@click.option('--top-mask', type=click.Path(exists=True, dir_okay=False, path_type=Path), help='''Solder mask Gerber
              used to cut the top colorful silkscreen around mask openings. Default: the converted top mask layer.''')
@click.option('--bottom-mask', type=click.Path(exists=True, dir_okay=False, path_type=Path), help='''Solder mask
              Gerber used to cut the bottom colorful silkscreen around mask openings. Default: the converted bottom
              mask layer.''')
@click.option('--no-progress', is_flag=True, help='Do not show a progress bar.')
@click.option('-v', '--verbose', is_flag=True, help='Print the detected dialect and the file to layer mapping.')
@click.argument('inpath', type=click.Path(exists=True, path_type=Path))
@click.argument('outpath', type=click.Path(file_okay=False, path_type=Path), default='output')
def convert(inpath, outpath, format_warnings, dialect, input_map, make_zip, zip_name, ignore_hash, imported_pcb_doc,
            max_hash_size, top_image, bottom_image, top_mask, bottom_mask, no_progress, verbose):
    """ Convert a directory or zip of Gerber and Excellon files into JLC's naming scheme. Output files are written to
    OUTPATH (default: ./output). """

    transformer = GerberTransformer(ignore_hash=ignore_hash, imported_pcb_doc=imported_pcb_doc,
                                    max_hash_file_size=max_hash_size)
    colorful = ColorfulOptions(top_image=top_image, bottom_image=bottom_image,
                               top_solder_mask=top_mask, bottom_solder_mask=bottom_mask)
    converter = Converter(dialect=dialect, transformer=transformer, overrides=_load_input_map(input_map),
                          colorful=colorful)

    with warnings.catch_warnings():
        warnings.simplefilter(format_warnings)
        try:
            with open_input(inpath) as indir:
                plan = converter.plan(indir)
                if verbose:
                    print(plan.format_layer_map())

                with click.progressbar(length=len(plan.matched), label='Converting', hidden=no_progress,
                                       file=sys.stderr) as bar:
                    progress = lambda path: bar.update(1)
                    if make_zip:
                        zip_path = outpath / f'{zip_name}.zip'
                        result = converter.execute_to_zip(plan, zip_path, progress=progress)
                    else:
                        result = converter.execute(plan, outpath, progress=progress)

        except ConversionError as e:
            raise click.ClickException(str(e)) from e

    print(result.summary())
    if make_zip:
        print(f'Output written to {zip_path}')
    else:
        print(f'Output written to {outpath}')

    if verbose:
        for layer, path in result.outputs.items():
            print(f'    {layer}: {path}')


@cli.command()
@click.option('--version', is_flag=True, callback=_print_version, expose_value=False, is_eager=True)
@click.option('--warnings', 'format_warnings', type=click.Choice(['default', 'ignore', 'once']), default='default',
              help='''Enable or disable warnings during conversion (default: on)''')
@click.option('-e', '--eda', 'dialect', type=DialectSelector(), default='auto', show_default=True,
              help='EDA dialect, see the convert command.')
@click.option('-m', '--input-map', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='Layer name map, see the convert command.')
@click.argument('path', type=click.Path(exists=True, path_type=Path))
def layers(path, format_warnings, dialect, input_map):
    """ Read a directory or zip with Gerber files and list the detected dialect and the file / layer assignment
    without writing anything. """
    converter = Converter(dialect=dialect, overrides=_load_input_map(input_map))

    with warnings.catch_warnings():
        warnings.simplefilter(format_warnings)
        try:
            with open_input(path) as indir:
                plan = converter.plan(indir)
        except ConversionError as e:
            raise click.ClickException(str(e)) from e

    print(plan.format_layer_map())
    if not plan.matched:
        print('(no layers recognized)')


if __name__ == '__main__':
    cli()
