"""
rawrelay - link-layer UDP relay.

Captures raw Ethernet frames, decodes Ethernet/IPv4/UDP by hand and
answers datagrams sent to one port with an upper-cased copy of their body.
"""

__version__ = "0.1.0"
