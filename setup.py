import pathlib
from setuptools import find_namespace_packages, setup

# The directory containing this file
HERE = pathlib.Path(__file__).parent

# The text of the README file
DESCRIPTION = (HERE / "README.md").read_text()

# Runtime dependencies, one per line
REQUIRE = (HERE / "requirements.txt").read_text().splitlines()

setup(
    name="kubesim",
    version="0.0.1",
    description="In-memory kubectl and helm command simulator",
    long_description=DESCRIPTION,
    long_description_content_type="text/markdown",
    platforms="any",
    classifiers=[
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Intended Audience :: Education",
    ],
    python_requires=">=3.9",
    packages=find_namespace_packages(include=["kubesim*"]),
    package_data={"kubesim.templates": ["*.j2"]},
    include_package_data=True,
    install_requires=REQUIRE,
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "kubesim = kubesim.cli.cmd:main",
        ]
    },
)
