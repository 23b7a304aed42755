from setuptools import setup

from app.__version__ import __version_string__

setup(
    name="PyCHIP8",
    version=__version_string__,
    description="CHIP-8 virtual machine with a pygame front end",
    package_dir={"": "app"},
    packages=["pychip8", "util", "backend"],
    py_modules=["logger", "resources", "__version__", "main"],
    python_requires=">=3.11",
    install_requires=[
        "numpy",
        "rich",
        "returns",
        "bitarray",
        "pygame",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["pychip8=main:main"]},
    include_package_data=True,
    zip_safe=False,
)
