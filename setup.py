from setuptools import setup, find_packages

setup(
    name="grade_annotator",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "python-dotenv>=1.0.1",
        "PyMuPDF>=1.23.8",
        "python-docx>=1.1.0",
        "openpyxl>=3.1.2",
        "reportlab>=4.1.0",
        "Pillow>=10.2.0",
        "python-magic>=0.4.27",
        "python-magic-bin==0.4.14; sys_platform == 'win32'"
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "grade-annotate=grade_annotator.cli:main",
        ],
    },
    python_requires=">=3.8",
    author="Exam Grader Team",
    description="Writes grades, comments and signatures into DOCX, XLSX and PDF documents",
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
