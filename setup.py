# setup.py
from setuptools import setup, find_packages
import codecs
import os

here = os.path.abspath(os.path.dirname(__file__))

with codecs.open(os.path.join(here, "README.md"), encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="civlan",
    version="0.1.0",
    author="Kris Kirby",
    author_email="ke4ahr@example.com",
    description="Icom CI-V radio control core with LAN band-conflict presence",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["civlan", "civlan.*"]),
    install_requires=[
        "pyserial>=3.5",
        "async-timeout>=4.0"
    ],
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Telecommunications Industry",
        "License :: OSI Approved :: GNU Lesser General Public License v3 or later (LGPLv3+)",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
        "Topic :: Communications :: Ham Radio"
    ],
    python_requires=">=3.8",
    extras_require={
        "dev": ["pytest>=7.0", "pytest-asyncio>=0.21", "twine>=4.0"],
        "test": ["pytest>=7.0", "pytest-asyncio>=0.21"]
    },
    keywords=[
        "civ",
        "icom",
        "amateurradio",
        "cat",
        "presence"
    ],
    license="LGPLv3.0"
)
