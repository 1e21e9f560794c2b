#!/usr/bin/env python
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

# Rules are applied with re.search against the bare file name. Within one dialect, rules are tried in the order given
# here, except that files ending in .drl are first checked against the three drill layers in the order nonplated,
# plated, via. Layer names are the values of transjlc.layers.LayerKind.

MATCH_RULES = {
'kicad': {
    'drill nonplated':      [r'(?i)-?NPTH\.drl$'],
    'drill plated':         [r'(?i)-?PTH\.drl$', r'(?i)\.drl$'],
    'top copper':           [r'-F[._]Cu\.gbr$'],
    'bottom copper':        [r'-B[._]Cu\.gbr$'],
    'inner copper':         [r'-In(\d+)[._]Cu\.gbr$'],
    'top mask':             [r'-F[._]Mask\.gbr$'],
    'bottom mask':          [r'-B[._]Mask\.gbr$'],
    'top paste':            [r'-F[._]Paste\.gbr$'],
    'bottom paste':         [r'-B[._]Paste\.gbr$'],
    # KiCad 5 and older spell it "SilkS"
    'top silk':             [r'-F[._]Silk(S|screen)\.gbr$'],
    'bottom silk':          [r'-B[._]Silk(S|screen)\.gbr$'],
    'mechanical outline':   [r'-Edge[._]Cuts\.gbr$'],
    },

'protel': {
    'drill nonplated':      [r'(?i)-?npth\.drl$'],
    'drill plated':         [r'(?i)\.drl$'],
    'top copper':           [r'(?i)\.gtl$'],
    'bottom copper':        [r'(?i)\.gbl$'],
    'top mask':             [r'(?i)\.gts$'],
    'bottom mask':          [r'(?i)\.gbs$'],
    'top paste':            [r'(?i)\.gtp$'],
    'bottom paste':         [r'(?i)\.gbp$'],
    'top silk':             [r'(?i)\.gto$'],
    'bottom silk':          [r'(?i)\.gbo$'],
    'mechanical outline':   [r'(?i)\.gko$', r'(?i)\.gm1$', r'(?i)\.outline$', r'(?i)\.oln$'],
    'inner copper':         [r'(?i)\.g(\d+)$', r'(?i)\.l(\d+)$'],
    # drill and design rule reports
    'other unknown':        [r'(?i)\.drr$', r'(?i)\.rep$', r'(?i)\.rpt$'],
    },

# Recognizes board sets that have already been converted.
'jlc': {
    'drill nonplated':      [r'^Drill_NPTH_Through\.DRL$'],
    'drill plated':         [r'^Drill_PTH_Through\.DRL$'],
    'drill via':            [r'^Drill_PTH_Through_Via\.DRL$'],
    'top copper':           [r'^Gerber_TopLayer\.GTL$'],
    'bottom copper':        [r'^Gerber_BottomLayer\.GBL$'],
    'inner copper':         [r'^Gerber_InnerLayer(\d+)\.G(\d+)$'],
    'top mask':             [r'^Gerber_TopSolderMaskLayer\.GTS$'],
    'bottom mask':          [r'^Gerber_BottomSolderMaskLayer\.GBS$'],
    'top paste':            [r'^Gerber_TopPasteMaskLayer\.GTP$'],
    'bottom paste':         [r'^Gerber_BottomPasteMaskLayer\.GBP$'],
    'top silk':             [r'^Gerber_TopSilkscreenLayer\.GTO$'],
    'bottom silk':          [r'^Gerber_BottomSilkscreenLayer\.GBO$'],
    'mechanical outline':   [r'^Gerber_BoardOutlineLayer\.GKO$'],
    },
}

# Order in which auto detection tries the dialects above. jlc comes first since protel's extension rules would also
# claim already converted files, but not tell its three drill files apart.
DETECTION_ORDER = ['jlc', 'kicad', 'protel']
