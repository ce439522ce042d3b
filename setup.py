from setuptools import setup, find_packages
import pathlib

# Detect layout
use_src = pathlib.Path("src/csvrecords").exists()
pkg_args = {"package_dir": {"": "src"}, "packages": find_packages(where="src")} if use_src \
           else {"packages": find_packages(where=".", exclude=["tests", "tests.*"])}

setup(
    name="csv-records",
    version="0.1.0",
    description="Map dataclass and pydantic records to CSV lines and stream them over files",
    python_requires=">=3.9",
    include_package_data=True,
    install_requires=[
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "jsonschema>=4.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    **pkg_args
)
