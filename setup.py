from setuptools import setup

setup(
    name="nbtree",
    version="0.1a",
    packages=['nbtree'],
    python_requires=">=3.6",
    extras_require={
        "test": [
            "pytest",
            "line_profiler",
        ],
    },
    entry_points={
        "console_scripts": [
            "nbtviewer = nbtree.viewer:main",
        ],
    },
    license="GNU Lesser General Public License version 3",
    author="Seth Junot",
    author_email="xsetech@gmail.com",
    description="Serializer and parser for NBT and SNBT tag trees",
    long_description="A serializer and deserializer for the binary NBT format, and a parser and writer for its text form, SNBT.",
    keywords="nbt snbt minecraft python3",
    url="https://github.com/xSetech/aPyNBT",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: GNU Lesser General Public License v3 (LGPLv3)",
        "Programming Language :: Python :: 3.6",
        "Programming Language :: Python :: 3 :: Only",
    ]
)
