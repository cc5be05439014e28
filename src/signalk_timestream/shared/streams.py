# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Redis Stream and identity constants.

Centralized definitions for stream names and context strings used across the
publisher and the history side.
"""

# =============================================================================
# BUS STREAMS
# =============================================================================

# Signal K deltas mirrored from the server bus, one JSON delta per entry.
#
# Producers (write to this stream):
#   - Signal K server bridge (outside this package)
#
# Consumers (read from this stream):
#   - RedisDeltaReader: emits each delta onto the in-process DeltaBus
SIGNALK_DELTA_STREAM = "signalk:deltas"

# Field holding the JSON-encoded delta in each stream entry
DELTA_FIELD = "delta"

# =============================================================================
# CONTEXTS
# =============================================================================

# Sentinel context Signal K uses for the local vessel
SELF_CONTEXT_SENTINEL = "vessels.self"

# Prefix of a fully-qualified vessel context
VESSEL_CONTEXT_PREFIX = "vessels."

# Source label attached to updates rebuilt from Timestream
SOURCE_LABEL = "signalk-to-timestream"
