import setuptools
from setuptools import find_packages

with open("readme.md", "r") as fh:
    long_description = fh.read()


vars2find = ["__author__", "__version__"]
vars2readme = {}
with open("./pos_recovery/__init__.py") as f:
    for line in f.readlines():
        for v in vars2find:
            if line.startswith(v):
                line = line.replace(" ", "").replace('"', "").replace("'", "").strip()
                vars2readme[v] = line.split("=")[1]

core_deps = [
    "pydantic>=2.0",
    "pymongo>=4.10",
    "dbus-fast",
    "tenacity",
    "aioboto3",
    "python-dotenv",
]

setuptools.setup(
    name="pos-recovery",
    version=vars2readme["__version__"],
    author=vars2readme["__author__"],
    description="Disaster-recovery daemon for a point-of-sale MongoDB database",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX :: Linux",
    ],
    python_requires=">=3.9",
    install_requires=core_deps,
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": ["pos-recovery=pos_recovery.cli:main"],
    },
)
