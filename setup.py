"""Setup script for the quest package."""

from setuptools import setup, find_packages

requires = ["click>=8.0", "trio>=0.23"]

extras_require = {"test": ["pytest>=7.0", "pytest-trio>=0.8"]}

__version__ = None
exec(open("src/quest/version.py").read())

setup(
    name="quest",
    version=__version__,
    author="quest developers",
    python_requires=">=3.9",
    package_dir={"": "src"},
    packages=find_packages("src", exclude=["test"]),
    include_package_data=True,
    install_requires=requires,
    extras_require=extras_require,
    entry_points={"console_scripts": ["quest = quest.cli:main"]},
)
