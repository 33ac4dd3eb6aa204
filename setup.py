# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at

#     http://www.apache.org/licenses/LICENSE-2.0

# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from glob import glob
from setuptools import setup, find_packages

NAME = "exmap"
VERSION = "1.0"

SCRIPTS = glob("bin/*")


setup(
    name=NAME,
    version=VERSION,
    packages=find_packages(exclude=("tests.*", "tests")),
    package_data={"exmap": ["*.yaml"]},
    scripts=SCRIPTS,
    python_requires=">=3.11",
    license='Apache 2.0',
    description='Model of process memory maps, read from the Linux /proc filesystem.',
    long_description=open('README.md').read(),
    long_description_content_type="text/markdown",
    install_requires=[
        'confuse>=1.4',
        'docopt',
        'pyyaml',
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Programming Language :: Python",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3 :: Only",
        "Topic :: System :: Monitoring",
    ],
)
