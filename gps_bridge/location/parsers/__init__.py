"""NMEA parsing components."""

from .nmea_parser import NMEAParser, parse_coordinate, validate_checksum

__all__ = ["NMEAParser", "parse_coordinate", "validate_checksum"]
