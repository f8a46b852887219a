from setuptools import setup

# Get long description from the README.rst file.
with open("README.rst") as file:
    LONG_DESC = file.read()

# Get version number from the module's __init__.py file.
with open("./src/ldapsession/__init__.py") as src:
    VER = [
        line.split('"')[1] for line in src.readlines() if line.startswith("__version__")
    ][0]

setup(
    name="ldapsession",
    version=VER,
    description="Thread-safe LDAP client sessions on top of python-ldap.",
    long_description=LONG_DESC,
    long_description_content_type="text/x-rst",
    license="MIT",
    package_dir={"ldapsession": "src/ldapsession"},
    package_data={"ldapsession": ["py.typed"]},
    packages=["ldapsession"],
    include_package_data=True,
    python_requires=">=3.7",
    install_requires=["python-ldap>=3.4.0"],
    extras_require={"test": ["pytest>=6.0"]},
    keywords=["python3", "ldap", "libldap", "python-ldap"],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: Unix",
        "Programming Language :: Python :: 3 :: Only",
        "Programming Language :: Python :: 3.7",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: System :: Systems Administration :: Authentication/Directory :: LDAP",
    ],
)
