import sys

# The application lives in src/nativebridge; main() sets up logging, the
# QApplication and the BridgeApp controller.
try:
    from src.nativebridge.__main__ import main
except ImportError as e:
    print("Error: Could not import the NativeBridge application.")
    print("Please ensure the project structure is correct (e.g., src/nativebridge/app.py exists)")
    print("and the dependencies are installed (pip install -e .).")
    print(f"Details: {e}")
    sys.exit(1)


if __name__ == '__main__':
    main()
