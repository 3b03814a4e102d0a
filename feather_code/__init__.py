"""Feather Code -- Code128 encoder/decoder with stylized rendering.

Encodes ASCII text as Code128 bar/space module widths using a
minimal-symbol choice of code sets A, B and C, decodes measured widths
back to text, and renders the result with decorative bar profiles,
rounded corners and ornaments that never move a module boundary beyond
a configurable tolerance.
"""
