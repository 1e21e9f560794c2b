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

from importlib.resources import files

from . import data
from .utils import MissingAssetError


#: Ordering instructions the manufacturer expects next to the fabrication files.
ORDERING_NOTES = 'PCB下单必读.txt'


def load_asset(name):
    """ Return the contents of an embedded asset file as :py:obj:`bytes`.

    :raises MissingAssetError: if there is no such asset.
    """
    try:
        return files(data).joinpath(name).read_bytes()
    except (FileNotFoundError, IsADirectoryError) as e:
        raise MissingAssetError(name) from e
