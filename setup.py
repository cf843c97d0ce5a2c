"""
SPDX-License-Identifier: Apache-2.0
"""

import setuptools

if __name__ == "__main__":
    setuptools.setup(
        name="fwintegrity",
        version="0.1.0",
        description="Measure UEFI variables and ACPI tables and detect drift against a stored baseline",
        license="Apache-2.0",
        python_requires=">=3.9",
        packages=setuptools.find_packages(exclude=["test", "test.*"]),
        install_requires=[
            "pyyaml",
        ],
        extras_require={
            "completion": ["argcomplete"],
            "test": ["pytest"],
        },
        data_files=[("etc/fwintegrity", ["config/fwintegrity.conf", "config/logging.conf"])],
        entry_points={
            "console_scripts": [
                "fwintegrity=fwintegrity.cmd.fwintegrity:main",
            ],
        },
        classifiers=[
            "Intended Audience :: System Administrators",
            "License :: OSI Approved :: Apache Software License",
            "Operating System :: POSIX :: Linux",
            "Programming Language :: Python :: 3",
            "Topic :: Security",
        ],
    )
