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

import tempfile
from contextlib import contextmanager
from pathlib import Path
from zipfile import ZipFile, BadZipFile, is_zipfile, ZIP_DEFLATED

from .utils import ConversionIOError


def is_archive(path):
    path = Path(path)
    return path.is_file() and (path.suffix.lower() == '.zip' or is_zipfile(path))


@contextmanager
def open_input(path):
    """ Context manager yielding a directory with the input files. Zip files are extracted into a temporary directory
    that is removed on exit, directories are passed through unchanged. """
    path = Path(path)
    if not is_archive(path):
        yield path
        return

    with tempfile.TemporaryDirectory() as tmpdir:
        tmp_indir = Path(tmpdir) / 'input'
        tmp_indir.mkdir()

        try:
            with ZipFile(path) as f:
                f.extractall(path=tmp_indir)
        except (OSError, BadZipFile) as e:
            raise ConversionIOError(path, 'extract') from e

        yield tmp_indir


def create_zip(files, path, overwrite_existing=True):
    """ Pack the given files into a flat zip file at :py:obj:`path`.

    :param files: Paths of the files to add. They are stored under their bare file name.
    :param overwrite_existing: If :py:obj:`False` and :py:obj:`path` exists, a :py:obj:`ValueError` is raised.
    """
    path = Path(path)
    if path.is_file():
        if overwrite_existing:
            path.unlink()
        else:
            raise ValueError('output zip file already exists and overwrite_existing is False')

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with ZipFile(path, 'w', compression=ZIP_DEFLATED) as le_zip:
            for file in files:
                le_zip.write(file, arcname=Path(file).name)
    except OSError as e:
        raise ConversionIOError(path, 'write') from e

    return path
