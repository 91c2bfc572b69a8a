#!/usr/bin/env python

from setuptools import setup

def read_description():
    import os
    path = os.path.join(os.path.dirname(__file__), 'README.rst')
    try:
        with open(path) as f:
            return f.read()
    except IOError:
        return 'No description found'

setup(
    name='rtorrentrpc',
    version='1.0.0',
    description='XMLRPC over SCGI client and relay for rTorrent',
    long_description=read_description(),
    packages=['rtorrentrpc'],
    install_requires=['requests'],
    extras_require={
        'test': ['pytest'],
    },
    python_requires='>=3.7',
    license='MIT',
    package_data={'rtorrentrpc': ['rtorrentrpc.conf.dist']},
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Console',
        'Intended Audience :: System Administrators',
        'License :: OSI Approved :: MIT License',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python :: 3',
        'Topic :: Communications :: File Sharing',
    ],
    entry_points={ 'console_scripts': [
        'rtorrentrpc = rtorrentrpc.cmd:commandline_handler',
    ]},
)
