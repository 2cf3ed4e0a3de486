"""colonsurv setup script"""

__authors__ = ["Dominik Dahlem"]
__status__ = "Development"

from read_version import read_version
from setuptools import find_namespace_packages, setup

with open("README.md", "r") as fh:
    LONG_DESC = fh.read()
    setup(
        name="colonsurv",
        version=read_version("colonsurv", "__init__.py"),
        author="Dominik Dahlem",
        author_email="mail@dominik-dahlem.com",
        description="Survival analysis reports of the colon cancer adjuvant chemotherapy trial",
        long_description=LONG_DESC,
        long_description_content_type="text/markdown",
        url="",
        zip_safe=False,
        packages=find_namespace_packages(include=["colonsurv", "colonsurv.*"]),
        classifiers=[
            "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
            "Programming Language :: Python :: 3.9",
            "Programming Language :: Python :: 3.10",
            "Programming Language :: Python :: 3.11",
            "Operating System :: OS Independent",
        ],
        install_requires=[
            "hydra-core",
            "omegaconf",
            "read_version",
            "numpy",
            "pandas",
            "scipy",
            "matplotlib",
            "seaborn",
            "lifelines",
            "statsmodels",
            "python-docx",
            "logdecorator",
            "hydra-colorlog",
        ],
        extras_require={
            "test": ["pytest", "hypothesis"],
        },
        # the hydra configurations live in conf/ next to the package
        include_package_data=True,
    )
