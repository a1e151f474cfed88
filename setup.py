# This should be only one line. If it must be multi-line, indent the second
# line onwards to keep the PKG-INFO file format intact.
"""Encrypt environment files locally and keep them in S3."""

from setuptools import find_packages, setup

version = open("src/envput/version.txt").read().strip()

setup(
    name="envput",
    version=version,
    install_requires=[
        "boto3",
        "ConfigUpdater",
        "cryptography",
        "importlib_resources",
        "py",
    ],
    extras_require={
        "test": [
            "mock",
            "pytest",
            "pytest-coverage",
            "pytest-instafail",
            "pytest-timeout",
        ]
    },
    entry_points="""
        [console_scripts]
            envput = envput.main:main
    """,
    license="BSD (2-clause)",
    keywords="secrets dotenv encryption s3",
    classifiers="""\
License :: OSI Approved :: BSD License
Programming Language :: Python
Programming Language :: Python :: 3
Programming Language :: Python :: 3 :: Only
"""[:-1].split("\n"),
    description=__doc__.strip(),
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages("src"),
    package_dir={"": "src"},
    include_package_data=True,
    zip_safe=False,
    python_requires=">=3.8",
)
