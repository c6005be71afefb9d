"""Version information for the weather cache service."""

__version__ = "1.0.0"
__version_info__ = (1, 0, 0)

# Release notes for this version
RELEASE_NOTES = """
Weather Cache Service v1.0.0

Key Features:
- Current weather lookups from OpenWeatherMap, cached in Redis for one hour
- Graceful degradation when Redis is unreachable, with background reconnects
- Hit/miss/error statistics and uptime at /stats
- Per-client rate limiting
- Configuration via YAML and environment variables
"""
