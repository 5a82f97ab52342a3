"""
SSH Command

sshコマンドのオプション定義。
rsyncのリモートシェル（-e）として渡すために使用する。
"""

import os
from typing import Optional

from .base import Command
from .options import OptionSpec

SSH_OPTIONS = {
    'ipv4': OptionSpec('4'),
    'ipv6': OptionSpec('6'),
    'forward_agent': OptionSpec('A'),
    'no_forward_agent': OptionSpec('a'),
    'compression': OptionSpec('C'),
    'force_tty': OptionSpec('t'),
    'disable_tty': OptionSpec('T'),
    'no_command': OptionSpec('N'),
    'quiet': OptionSpec('q'),
    'verbose': OptionSpec('v'),
    'forward_x11': OptionSpec('X'),
    'no_forward_x11': OptionSpec('x'),
    'bind_address': OptionSpec('b', has_argument=True),
    'cipher_spec': OptionSpec('c', has_argument=True),
    'config_file': OptionSpec('F', has_argument=True),
    'identity_file': OptionSpec('i', has_argument=True, repeatable=True),
    'jump_host': OptionSpec('J', has_argument=True),
    'login_name': OptionSpec('l', has_argument=True),
    'mac_spec': OptionSpec('m', has_argument=True),
    'option': OptionSpec('o', has_argument=True, repeatable=True),
    'port': OptionSpec('p', has_argument=True),
    'local_forward': OptionSpec('L', has_argument=True, repeatable=True),
    'remote_forward': OptionSpec('R', has_argument=True, repeatable=True),
    'dynamic_forward': OptionSpec('D', has_argument=True, repeatable=True),
}


class SshCommand(Command):
    """
    sshコマンド

    使用例:
    ```python
    ssh = SshCommand().set_options({"port": 2222, "identity_file": ["~/.ssh/id_ed25519"]})
    str(ssh)  # "ssh -p 2222 -i '~/.ssh/id_ed25519'"
    ```
    """

    options_schema = SSH_OPTIONS

    def __init__(self, executable: Optional[str] = None, cwd: Optional[str] = None, **kwargs):
        """
        Args:
            executable: sshコマンドのパス（省略時は環境変数SSH_PATH、なければ"ssh"）
            cwd: 作業ディレクトリ
            **kwargs: Commandに渡すその他の引数
        """
        super().__init__(executable or os.environ.get('SSH_PATH', 'ssh'), cwd, **kwargs)
