"""
BEACON - Streaming decoder for BEACON link dumps.

Reads RFC-dialect dumps (source|annotation|target) and URLTeam dumps
(shortcode|target) one line at a time, never holding the whole file.
"""

__version__ = "0.3.0"

from beacon.spec import Format, BOM
from beacon.errors import BeaconError, LinkLineError, MetaLineError
from beacon.document import BeaconDocument, Link, MetaField
from beacon.reader import BeaconReader, LineCursor, open_rfc, open_urlteam
