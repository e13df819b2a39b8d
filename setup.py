from setuptools import setup, find_packages

setup(
    name="campsite-checker",
    version="1.0.0",
    description="CLI tool for watching a Campspot booking page for open campsites",
    author="Campsite Checker",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "playwright>=1.40.0",
        "loguru>=0.7.0",
        "click>=8.1.0",
        "requests>=2.31.0",
        "beautifulsoup4>=4.12.0",
        "pydantic>=2.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "campsite-checker=campsite_checker.cli:main",
        ],
    },
    python_requires=">=3.8",
)
