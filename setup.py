from glob import glob
from setuptools import setup


setup(
    name='imgexpr',
    use_scm_version={
        'fallback_version': '0.1.0',
    },
    description='Per-pixel arithmetic expressions over images',
    install_requires=[
        'regex',
        'prompt_toolkit',
        'Pillow',
    ],
    packages=['imgexpr'],
    package_dir={'': 'src'},
    include_package_data=True,
    zip_safe=False,
    classifiers=[
        "Programming Language :: Python :: 3",
    ],
    setup_requires=[
        'setuptools_scm',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-cov',
            'coverage',
            'flake8',
        ],
    },
    scripts=glob('bin/*'),
    license='ISC',
)
