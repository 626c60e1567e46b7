import re
from setuptools import setup, find_packages

with open('acoord/__init__.py', encoding='utf-8') as f:
    version = re.search(r"__version__ = '([^']+)'", f.read()).group(1)

setup(
    name='acoord',
    version=version,
    description='Atomic coordinates: structure model and file format conversion',
    license='MIT',
    packages=find_packages(include=['acoord', 'acoord.*']),
    install_requires=['numpy', 'networkx', 'pyyaml', 'jinja2'],
    extras_require={'test': ['pytest']},
    package_data={'acoord': ['data/*.json']},
    include_package_data=True,
    classifiers=[
        'Development Status :: 2 - Developing',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python :: 3',
        'Topic :: Scientific/Engineering',
        'Topic :: Scientific/Engineering :: Chemistry']
)
