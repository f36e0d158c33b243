from setuptools import setup


setup(
    name="hammadde-usage",
    version="0.3.0",
    description="Branch-level reconciliation of raw-material deliveries against recipe-based usage",
    packages=["hammadde_usage"],
    install_requires=[
        "pandas",
        "chardet",
        "openpyxl",
        "streamlit",
    ],
    extras_require={
        "excel-legacy": ["xlrd"],
        "ods": ["odfpy"],
        "all": ["xlrd", "odfpy"],
    },
    entry_points={
        "console_scripts": [
            "hammadde-usage=hammadde_usage.cli:main",
        ]
    },
)
