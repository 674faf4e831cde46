from setuptools import setup, find_packages

setup(
    name="contrib-finder",
    version="1.0.0",
    description="Find GitHub OSS contribution opportunities matching your skills",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.31.0",
        "rich>=13.0.0",
        "click>=8.1.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "issue-finder=contrib_finder.cli:main",
        ],
    },
)
