"""Setup script for Upload Monitor."""

from setuptools import setup, find_packages

setup(
    name="upload-monitor",
    version="1.0.0",
    description="Watches a folder and uploads finished statement files to a collection endpoint",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    author="Upload Monitor contributors",
    python_requires=">=3.10",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "watchdog>=3.0.0",
        "requests>=2.31.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "upload-monitor=upload_monitor.service:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Operating System :: MacOS :: MacOS X",
        "Operating System :: Microsoft :: Windows",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Topic :: Utilities",
    ],
)
