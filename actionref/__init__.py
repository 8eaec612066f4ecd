__author__ = 'socket.dev'
__version__ = '0.1.0'
