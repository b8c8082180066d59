"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://github.com/zackees/webrtcbuilds"
KEYWORDS = "webrtc libwebrtc gn ninja static-library build depot_tools"
HERE = os.path.dirname(os.path.abspath(__file__))


if __name__ == "__main__":
    setup(
        name="webrtcbuilds",
        version="0.1.0",
        description="Fetch, patch, build and package standalone WebRTC static libraries",
        maintainer="Zachary Vorhies",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.9",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        package_data={"webrtcbuilds": ["resources/pkgconfig/*.pc.in"]},
        include_package_data=True,
        install_requires=[
            "requests",
            "tqdm",
        ],
        extras_require={
            "test": ["pytest"],
        },
        entry_points={
            "console_scripts": [
                "webrtcbuilds=webrtcbuilds.cli:main",
            ],
        },
    )
