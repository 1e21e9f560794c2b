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
transjlc.crypto
===============
**Encryption of colorful silkscreen files**

Colorful silkscreen files are encrypted for the manufacturer with a hybrid scheme. A fresh AES-128 key and a 16 byte
IV are generated per generation run and used for AES-GCM with the IV as nonce. Both are encrypted with the
manufacturer's RSA public key using OAEP with SHA-256. Each output file is laid out as::

    RSA(key) || RSA(iv) || AES-GCM ciphertext || 16 byte GCM tag
"""

import os
from dataclasses import dataclass

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .utils import write_file


JLC_PUBLIC_KEY = b'''-----BEGIN PUBLIC KEY-----
MIIBIjANBgkqhkiG9w0BAQEFAAOCAQ8AMIIBCgKCAQEAzPtuUqJecaR/wWtctGT8
QuVslmDH3Ut3s8c1Ls4A+M9rwpeLjgDUqfcrSrTHBrl5k/dOeJEWMeNF7STWS5jo
WZE0H60cvf2bhormC9S6CRwq4Lw0ua0YQMo66R/qCtLVa5w6WkaPCz4b0xaHWtej
JH49C0T67rU2DkepXuMPpwNCflMU+WgEQioZEldUTD6gYpu2U5GrW4AE0AQiIo+j
e7tgN8PlBMbMaEfu0LokZyth1ugfuLAgyogWnedAegQmPZzAUe36Sni94AsDlhxm
mjFl+WQZzD3MclbEY6KQB5XL8zCR/J6pCUUwfHantLxY/gQi0XJG5hWWtDyH/fR2
lwIDAQAB
-----END PUBLIC KEY-----
'''

AES_KEY_SIZE = 16
AES_IV_SIZE = 16


def oaep_padding():
    return padding.OAEP(mgf=padding.MGF1(algorithm=hashes.SHA256()), algorithm=hashes.SHA256(), label=None)


@dataclass(frozen=True)
class KeyMaterial:
    """ Symmetric key material shared by all files of one generation run, together with its RSA-wrapped form. """
    aes_key: bytes
    aes_iv: bytes
    wrapped_key: bytes
    wrapped_iv: bytes

    @property
    def header(self):
        return self.wrapped_key + self.wrapped_iv

    def __repr__(self):
        return f'<KeyMaterial {len(self.wrapped_key)}+{len(self.wrapped_iv)} byte header>'


class HybridEncryptor:
    """ Encrypts payloads for the holder of the private key matching :py:obj:`public_key_pem`.

    :param public_key_pem: PEM encoded RSA public key. Defaults to the manufacturer's key.
    """

    def __init__(self, public_key_pem=JLC_PUBLIC_KEY):
        if isinstance(public_key_pem, str):
            public_key_pem = public_key_pem.encode()
        self.public_key = serialization.load_pem_public_key(public_key_pem)

    @property
    def wrapped_size(self):
        """ Size in bytes of one RSA-wrapped value. """
        return self.public_key.key_size // 8

    def generate_key_material(self):
        key, iv = os.urandom(AES_KEY_SIZE), os.urandom(AES_IV_SIZE)
        return KeyMaterial(key, iv,
                           self.public_key.encrypt(key, oaep_padding()),
                           self.public_key.encrypt(iv, oaep_padding()))

    def encrypt(self, plaintext, key_material):
        if isinstance(plaintext, str):
            plaintext = plaintext.encode('utf-8')
        ciphertext = AESGCM(key_material.aes_key).encrypt(key_material.aes_iv, plaintext, None)
        return key_material.header + ciphertext

    def write(self, path, plaintext, key_material):
        data = self.encrypt(plaintext, key_material)
        write_file(path, data)
        return data

    def split_payload(self, data):
        """ Split an encrypted file into ``(wrapped key, wrapped iv, ciphertext with tag)``. """
        n = self.wrapped_size
        if len(data) < 2 * n:
            raise ValueError(f'Encrypted payload of {len(data)} bytes is shorter than its {2*n} byte key header')
        return data[:n], data[n:2*n], data[2*n:]
