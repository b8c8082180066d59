"""webrtcbuilds - standalone WebRTC static library builds.

Fetches a WebRTC revision with depot_tools, builds it with gn and ninja,
combines the objects into libwebrtc_full and packages headers and libraries.
"""

__version__ = "0.1.0"
