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

from dataclasses import dataclass

from .utils import LengthUnit, MM, Inch


@dataclass
class FileSettings:
    ''' Number format settings of a Gerber file, as given by its ``%FS`` and ``%MO`` statements.

    .. note::
        ``zeros`` uses Gerber terminology: ``'leading'`` means leading zeros are suppressed, i.e. numbers are aligned
        to their last digit.
    '''
    #: Coordinate notation. ``'absolute'`` or ``'incremental'``.
    notation : str = 'absolute'
    #: File unit. :py:attr:`~.utils.MM` or :py:attr:`~.utils.Inch`
    unit : LengthUnit = MM
    #: Zero suppression settings. See note at :py:class:`.FileSettings` for meaning.
    zeros : str = None
    #: Number format. ``(integer, decimal)`` tuple of number of integer and decimal digits. At most ``(6,7)`` in Gerber.
    number_format : tuple = (2, 5)

    # input validation
    def __setattr__(self, name, value):
        if name == 'unit' and value not in [MM, Inch]:
            raise ValueError(f'Unit must be either Inch or MM, not {value}')
        elif name == 'notation' and value not in ['absolute', 'incremental']:
            raise ValueError(f'Notation must be either "absolute" or "incremental", not {value}')
        elif name == 'zeros' and value not in [None, 'leading', 'trailing']:
            raise ValueError(f'zeros must be either "leading" or "trailing" or None, not {value}')
        elif name == 'number_format':
            if len(value) != 2:
                raise ValueError(f'Number format must be a (integer, fractional) tuple of integers, not {value}')

            if value[0] > 6 or value[1] > 7:
                raise ValueError(f'Requested precision of {value} is too high. Gerber only allows up to 6.7 digits.')

        super().__setattr__(name, value)

    def __str__(self):
        return f'<File settings: unit={self.unit} notation={self.notation} zeros={self.zeros} number_format={self.number_format}>'

    def parse_gerber_value(self, value):
        """ Parse a numeric string in gerber format using this file's settings. Returns the value in file units. """
        if not value:
            return None

        sign, value = (-1, value[1:]) if value[0] == '-' else (1, value.lstrip('+'))

        if '.' in value or value == '00':
            return sign * float(value)

        integer_digits, decimal_digits = self.number_format

        if decimal_digits == 0:
            return sign * float(value)

        if self.zeros == 'trailing':
            value = value + '0' * max(0, integer_digits - len(value))
            return sign * float(value[:integer_digits] + '.' + (value[integer_digits:] or '0'))

        else: # leading or no zero suppression
            value = '0' * max(0, decimal_digits + 1 - len(value)) + value
            return sign * float(value[:-decimal_digits] + '.' + value[-decimal_digits:])

    def parse_length(self, value):
        """ Like :py:meth:`parse_gerber_value`, but converted to millimeters. """
        value = self.parse_gerber_value(value)
        return MM(value, self.unit)
