import installkit

if __name__ == '__main__':
	installkit.run_as_a_module()
