#!/usr/bin/env python3

import re
from pathlib import Path
from setuptools import setup, find_packages

def version():
    init = Path(__file__).with_name('transjlc') / '__init__.py'
    return re.search(r"^__version__ = '([^']+)'", init.read_text(), re.MULTILINE)[1]

setup(
    name='transjlc',
    version=version(),
    author='The transjlc authors',
    description='Convert Gerber and Excellon files from common EDA tools for ordering PCBs at JLC',
    long_description=Path('README.md').read_text(),
    long_description_content_type='text/markdown',
    packages=find_packages(),
    package_data={'transjlc.data': ['*.txt']},
    include_package_data=True,
    install_requires=['click>=8.1', 'Pillow', 'cryptography'],
    extras_require={
        'tests': ['pytest', 'beautifulsoup4', 'lxml'],
    },
    entry_points={
        'console_scripts': [
            'transjlc = transjlc.cli:cli',
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'Intended Audience :: Manufacturing',
        'License :: OSI Approved :: Apache Software License',
        'Natural Language :: English',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3 :: Only',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Scientific/Engineering :: Electronic Design Automation (EDA)',
        'Topic :: Utilities',
    ],
    keywords='gerber excellon pcb jlc',
    python_requires='>=3.10',
)
