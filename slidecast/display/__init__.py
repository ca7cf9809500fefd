"""Display client: sequencing, crossfade rendering and remote-synced playback."""
